"""Turn a loaded Config into validated WatchSettings.

This is where startup validation happens: a missing marker file is fatal,
while watch roots that do not exist are only warned about and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from quietwatch.config.loader import ConfigError
from quietwatch.config.schema import Config
from quietwatch.watching.scanner import ExclusionSet, PatternSet
from quietwatch.watching.settings import WatchSettings

_log = logging.getLogger("quietwatch.config")


def resolve_path(base: Path, path: str | Path) -> Path:
    """Resolve a path relative to ``base`` (absolute paths pass through)."""
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    return p.resolve()


def resolve_watch_roots(project_root: Path, entries: Iterable[str]) -> list[Path]:
    """Resolve configured watch roots against the project root.

    Roots that do not exist (or are not directories) are logged and skipped.
    If nothing usable remains, the project root itself is watched.

    Args:
        project_root: Absolute project directory.
        entries: Root paths as configured, usually relative.

    Returns:
        Distinct absolute directories, in configured order.
    """
    roots: list[Path] = []
    configured = 0

    for entry in entries:
        configured += 1
        root = resolve_path(project_root, entry)
        if not root.is_dir():
            _log.warning("Watch root does not exist, skipping: %s", root)
            continue
        if root not in roots:
            roots.append(root)

    if not roots:
        if configured:
            _log.debug("No valid watch roots configured, using %s", project_root)
        roots.append(project_root)

    return roots


def resolve_settings(config: Config) -> WatchSettings:
    """Build WatchSettings from config, validating the marker file.

    Raises:
        ConfigError: If the project root or marker file does not exist.
    """
    watch = config.watch
    project_root = Path(watch.project_root or ".").expanduser().resolve()
    if not project_root.is_dir():
        raise ConfigError(f"Project root does not exist: {project_root}")

    marker_path = resolve_path(project_root, watch.target)
    if not marker_path.is_file():
        raise ConfigError(f"Marker file not found: {marker_path}")

    return WatchSettings(
        project_root=project_root,
        marker_path=marker_path,
        roots=tuple(resolve_watch_roots(project_root, watch.watch)),
        exclusions=ExclusionSet(watch.exclude),
        patterns=PatternSet(watch.patterns),
        poll_interval=watch.poll_interval_ms / 1000.0,
        quiet_period=watch.quiet_period_ms / 1000.0,
        tag=watch.tag,
    )
