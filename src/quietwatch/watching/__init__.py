"""Polling watch loop for quietwatch.

Scans watch roots for the newest matching file, waits until edits have been
quiet for a while, then touches the marker file once. Polling is used instead
of native file notifications for cross-platform reliability.
"""

from quietwatch.watching.debounce import (
    Clock,
    DebounceState,
    Debouncer,
    MonotonicClock,
    Transition,
    advance,
)
from quietwatch.watching.marker import format_timestamp, touch_marker
from quietwatch.watching.runner import WatchEvent, WatchRunner
from quietwatch.watching.scanner import ExclusionSet, PatternSet, ScanResult, scan
from quietwatch.watching.settings import WatchSettings

__all__ = [
    "Clock",
    "DebounceState",
    "Debouncer",
    "ExclusionSet",
    "MonotonicClock",
    "PatternSet",
    "ScanResult",
    "Transition",
    "WatchEvent",
    "WatchRunner",
    "WatchSettings",
    "advance",
    "format_timestamp",
    "scan",
    "touch_marker",
]
