"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides (QW_*)
- Command-line overrides passed in as a config-shaped dict
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from quietwatch.config.merge import merge_configs
from quietwatch.config.paths import get_project_config_path, get_user_config_path
from quietwatch.config.schema import (
    DEFAULT_EXCLUDE,
    DEFAULT_PATTERNS,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_QUIET_PERIOD_MS,
    DEFAULT_TAG,
    DEFAULT_TARGET,
    Config,
    LoggingConfig,
    WatchConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("quietwatch.config")

LIST_SEPARATOR = ";"

# Environment variable -> key in the "watch" section
_WATCH_ENV = {
    "QW_ROOT": "project_root",
    "QW_TARGET": "target",
    "QW_WATCH": "watch",
    "QW_EXCLUDE": "exclude",
    "QW_PATTERNS": "patterns",
    "QW_POLL_MS": "poll_interval_ms",
    "QW_QUIET_MS": "quiet_period_ms",
    "QW_TAG": "tag",
}


class ConfigError(Exception):
    """Raised when configuration is invalid or startup validation fails."""


def split_list(value: Any) -> list[str]:
    """Normalize a list option.

    Accepts a semicolon-separated string (``"docs;notebooks"``) or a YAML
    list. Entries are stripped and empty entries dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(LIST_SEPARATOR)
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ConfigError(f"Expected a list or ';'-separated string, got {value!r}")
    return [item.strip() for item in items if item.strip()]


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Build config dict from QW_* environment variables.

    Returns:
        Config dict with values from environment.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    watch: dict[str, Any] = {}
    for var, key in _WATCH_ENV.items():
        value = env.get(var)
        if value:
            watch[key] = value
    if watch:
        overrides["watch"] = watch

    log_path = env.get("QW_LOG")
    if log_path:
        overrides["logging"] = {"file": log_path}

    return overrides


def _get(section: dict[str, Any], key: str, default: Any) -> Any:
    value = section.get(key)
    return default if value is None else value


def _parse_ms(value: Any, name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer number of milliseconds, got {value!r}")
    try:
        ms = int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"{name} must be an integer number of milliseconds, got {value!r}"
        ) from None
    if ms < minimum:
        raise ConfigError(f"{name} must be at least {minimum} ms, got {ms}")
    return ms


def _parse_verbose(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"logging.verbose must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"logging.verbose must be an integer, got {value!r}") from None


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.

    Raises:
        ConfigError: If a value has the wrong shape.
    """
    watch_data = data.get("watch") or {}
    if not isinstance(watch_data, dict):
        raise ConfigError("'watch' section must be a mapping")

    project_root = watch_data.get("project_root")
    exclude = watch_data.get("exclude")
    patterns = watch_data.get("patterns")

    watch = WatchConfig(
        project_root=str(project_root) if project_root else None,
        target=str(watch_data.get("target") or DEFAULT_TARGET),
        watch=split_list(watch_data.get("watch")),
        exclude=split_list(exclude) if exclude is not None else list(DEFAULT_EXCLUDE),
        patterns=split_list(patterns) if patterns is not None else list(DEFAULT_PATTERNS),
        poll_interval_ms=_parse_ms(
            _get(watch_data, "poll_interval_ms", DEFAULT_POLL_INTERVAL_MS),
            "poll_interval_ms",
            minimum=1,
        ),
        quiet_period_ms=_parse_ms(
            _get(watch_data, "quiet_period_ms", DEFAULT_QUIET_PERIOD_MS),
            "quiet_period_ms",
            minimum=0,
        ),
        tag=str(watch_data.get("tag") or DEFAULT_TAG),
    )

    log_data = data.get("logging") or {}
    if not isinstance(log_data, dict):
        raise ConfigError("'logging' section must be a mapping")

    verbose = log_data.get("verbose")
    level = log_data.get("level")
    logging_config = LoggingConfig(
        level=str(level) if level is not None else None,
        verbose=_parse_verbose(verbose) if verbose is not None else None,
        file=log_data.get("file"),
    )

    known_keys = {"watch", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(watch=watch, logging=logging_config, extra=extra)


def load_config(
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Command-line overrides
    2. Environment variables (QW_*)
    3. Project config ($project_root/.quietwatch.yaml)
    4. User config (~/.config/quietwatch/config.yaml or %APPDATA%)
    5. Built-in defaults

    The project root used to locate the project config comes from the
    command line, QW_ROOT, the user config, or the current directory, in
    that order.

    Args:
        overrides: Config-shaped dict built from command-line flags.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Merged Config object.
    """
    user_data: dict[str, Any] = {}
    user_path = get_user_config_path()
    if user_path:
        user_data = load_yaml_file(user_path)
        if user_data:
            _log.debug("Loaded config from %s", user_path)

    env_data = env_overrides(environ)
    cli_data = overrides or {}

    head = merge_configs(user_data, env_data, cli_data)
    head_watch = head.get("watch")
    project_root = (
        head_watch.get("project_root") if isinstance(head_watch, dict) else None
    ) or os.getcwd()

    project_path = get_project_config_path(project_root)
    project_data = load_yaml_file(project_path)
    if project_data:
        _log.debug("Loaded config from %s", project_path)

    merged = merge_configs(
        user_data,
        project_data,
        env_data,
        cli_data,
        {"watch": {"project_root": str(project_root)}},
    )

    return dict_to_config(merged)
