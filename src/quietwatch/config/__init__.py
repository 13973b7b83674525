"""Configuration management for quietwatch.

Provides layered configuration with:
- User-level config (~/.config/quietwatch/config.yaml or %APPDATA%)
- Project-level config ($project_root/.quietwatch.yaml)
- Environment variable overrides (QW_*)
- Command-line overrides (highest priority)

Example usage:
    from quietwatch.config import load_config, resolve_settings

    config = load_config(overrides={"watch": {"watch": "docs"}})
    settings = resolve_settings(config)
    print(settings.roots, settings.marker_path)
"""

from quietwatch.config.loader import (
    ConfigError,
    dict_to_config,
    env_overrides,
    load_config,
    split_list,
)
from quietwatch.config.paths import (
    get_project_config_path,
    get_user_config_path,
)
from quietwatch.config.resolve import (
    resolve_settings,
    resolve_watch_roots,
)
from quietwatch.config.schema import (
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "ConfigError",
    "load_config",
    "resolve_settings",
    "resolve_watch_roots",
    # Schema types
    "WatchConfig",
    "LoggingConfig",
    # Helpers
    "dict_to_config",
    "env_overrides",
    "split_list",
    # Path utilities
    "get_user_config_path",
    "get_project_config_path",
]
