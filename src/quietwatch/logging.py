"""Logging setup for quietwatch.

Diagnostics go through the standard logging module under the "quietwatch"
logger. User-facing status lines are printed by the CLI instead, so by
default logs only reach a file (config ``logging.file`` or ``QW_LOG``) or an
interactive stderr.

Verbosity (``-v`` count or ``logging.verbose``):
    0 error, 1 warning, 2 info (default), 3 verbose, 4 trace
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quietwatch.config.schema import LoggingConfig

TRACE = 5  # per-tick scan summaries
VERBOSE = 15  # changes seen and marker writes

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("quietwatch")

_initialized = False

_LEVELS_BY_NAME = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_LEVELS_BY_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the log level; ``verbose`` wins over ``level``."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(_LEVELS_BY_VERBOSITY) - 1)
        return _LEVELS_BY_VERBOSITY[index]
    if config.level:
        return _LEVELS_BY_NAME.get(config.level.upper(), logging.INFO)
    return logging.INFO


def _make_handler(log_path: str | None) -> logging.Handler | None:
    if log_path:
        try:
            return logging.FileHandler(
                os.path.expanduser(log_path), mode="a", encoding="utf-8"
            )
        except OSError as e:
            if not sys.stderr.isatty():
                return None
            print(f"[quietwatch] Failed to open log file: {e}", file=sys.stderr)
            return logging.StreamHandler(sys.stderr)
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the quietwatch logger once; later calls are no-ops.

    Args:
        config: Level, verbosity and log file settings. The ``QW_LOG``
            environment variable supplies the file when config has none.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    log_path = config.file if config and config.file else os.environ.get("QW_LOG")
    handler = _make_handler(log_path)
    if handler is None:
        return

    # Format: HH:MM:SS level: message
    handler.setFormatter(
        _LowercaseLevelFormatter("%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )
    handler.setLevel(level)
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the quietwatch logger or one of its children (e.g. "scanner")."""
    if name:
        return logger.getChild(name)
    return logger
