"""Resolved runtime settings for a watch session."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from quietwatch.watching.scanner import ExclusionSet, PatternSet


@dataclass(frozen=True)
class WatchSettings:
    """Everything the runner needs, with paths absolute and durations in seconds.

    Built once at startup by ``quietwatch.config.resolve_settings`` and never
    changed afterwards.
    """

    project_root: Path
    marker_path: Path
    roots: tuple[Path, ...]
    exclusions: ExclusionSet
    patterns: PatternSet
    poll_interval: float
    quiet_period: float
    tag: str
