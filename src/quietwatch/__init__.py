"""quietwatch: coalesce bursts of file edits into a single marker-file touch."""

__version__ = "0.1.0"

# Public API
from quietwatch.config import Config, ConfigError, load_config, resolve_settings
from quietwatch.watching import (
    DebounceState,
    ExclusionSet,
    PatternSet,
    ScanResult,
    WatchEvent,
    WatchRunner,
    WatchSettings,
    advance,
    scan,
    touch_marker,
)

__all__ = [
    # Config
    "Config",
    "ConfigError",
    "load_config",
    "resolve_settings",
    # Watching
    "DebounceState",
    "ExclusionSet",
    "PatternSet",
    "ScanResult",
    "WatchEvent",
    "WatchRunner",
    "WatchSettings",
    "advance",
    "scan",
    "touch_marker",
]
