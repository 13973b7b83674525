"""Configuration schema dataclasses for quietwatch.

Defines the structure of configuration at all levels (user, project,
environment, command line). All fields carry defaults so partial configs
merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TARGET = "_quarto.yml"
DEFAULT_TAG = "# quietwatch: "
DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_QUIET_PERIOD_MS = 1500

DEFAULT_EXCLUDE = [
    ".git",
    ".quarto",
    "_site",
    "_freeze",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    "bin",
    "obj",
    ".ipynb_checkpoints",
]

DEFAULT_PATTERNS = [
    "*.qmd",
    "*.md",
    "*.ipynb",
    "*.py",
    "*.r",
    "*.yml",
    "*.yaml",
    "*.css",
    "*.scss",
    "*.bib",
    "*.lua",
    "*.html",
]


@dataclass
class WatchConfig:
    """What to watch and which marker to touch.

    Example .quietwatch.yaml:
        watch:
          target: _quarto.yml
          watch: [docs, notebooks]
          exclude: [.git, _site]
          poll_interval_ms: 500
          quiet_period_ms: 2000
    """

    project_root: str | None = None  # Default: current working directory
    target: str = DEFAULT_TARGET  # Marker file, relative to project root
    watch: list[str] = field(default_factory=list)  # Empty -> project root
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    quiet_period_ms: int = DEFAULT_QUIET_PERIOD_MS
    tag: str = DEFAULT_TAG


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept rather than rejected
    extra: dict[str, Any] = field(default_factory=dict)
