"""Polling scan for the newest matching file under a set of roots.

Each call re-walks every root; no index is kept between polls. Project trees
watched this way are small and the poll interval is around a second.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from quietwatch.logging import TRACE, get_logger

log = get_logger("scanner")


class ExclusionSet:
    """Directory names whose contents never count as changes.

    A path is excluded when ``/name/`` or ``\\name\\`` occurs anywhere in it.
    Both separators are checked on every platform, since configured paths and
    walked paths do not always agree on the convention.
    """

    def __init__(self, names: Iterable[str]) -> None:
        stripped = (n.strip().strip("/\\") for n in names)
        self._names = frozenset(n for n in stripped if n)
        self._needles = tuple(
            needle
            for name in sorted(self._names)
            for needle in (f"/{name}/", f"\\{name}\\")
        )

    @property
    def names(self) -> frozenset[str]:
        return self._names

    def excludes(self, path: str | os.PathLike[str]) -> bool:
        """Check whether a full path falls inside an excluded directory."""
        text = os.fspath(path)
        return any(needle in text for needle in self._needles)

    def excludes_dir_name(self, name: str) -> bool:
        """Check whether a directory can be pruned from the walk."""
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"ExclusionSet({sorted(self._names)!r})"


class PatternSet:
    """Filename globs such as ``*.qmd``, matched case-insensitively."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self._patterns = tuple(dict.fromkeys(p.strip() for p in patterns if p.strip()))
        self._folded = tuple(p.casefold() for p in self._patterns)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def matches(self, filename: str) -> bool:
        name = filename.casefold()
        return any(fnmatch.fnmatchcase(name, p) for p in self._folded)

    def __iter__(self) -> Iterator[str]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return f"PatternSet({list(self._patterns)!r})"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan.

    Attributes:
        timestamp: Newest modification time (seconds since the epoch), or
            None when no file survived filtering.
        path: File that produced ``timestamp``.
        matched: Number of files that survived filtering.
    """

    timestamp: float | None = None
    path: Path | None = None
    matched: int = 0


def _path_key(path: str | os.PathLike[str]) -> str:
    return os.path.realpath(path).casefold()


def scan(
    roots: Sequence[Path],
    patterns: PatternSet,
    excluder: ExclusionSet,
    self_path: Path | None = None,
) -> ScanResult:
    """Find the most recently modified matching file under ``roots``.

    Files are skipped when their name matches no pattern, when their full
    path is excluded, or when they resolve to ``self_path`` (compared
    case-insensitively). Unreadable directories and files that vanish or
    cannot be stat'ed are skipped silently; a root that does not exist
    contributes nothing.

    Args:
        roots: Directories to walk recursively.
        patterns: Filename globs to include.
        excluder: Directory names to leave out.
        self_path: The marker file, which must never count as a change.

    Returns:
        ScanResult with the newest timestamp, or an empty result.
    """
    self_key = _path_key(self_path) if self_path else None

    newest: float | None = None
    newest_path: str | None = None
    matched = 0

    for root in roots:
        # os.walk drops unreadable directories unless onerror is given
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if not excluder.excludes_dir_name(d)]

            for filename in filenames:
                if not patterns.matches(filename):
                    continue

                full = os.path.join(dirpath, filename)
                if excluder.excludes(full):
                    continue
                # Resolved, so a symlink to the marker is caught too
                if self_key is not None and _path_key(full) == self_key:
                    continue

                try:
                    mtime = os.stat(full).st_mtime
                except OSError:
                    continue

                matched += 1
                if newest is None or mtime > newest:
                    newest = mtime
                    newest_path = full

    log.log(TRACE, "Scanned %d root(s): %d file(s), newest=%s", len(roots), matched, newest_path)

    return ScanResult(
        timestamp=newest,
        path=Path(newest_path) if newest_path else None,
        matched=matched,
    )
