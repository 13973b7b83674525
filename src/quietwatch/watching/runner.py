"""Polling driver loop.

One tick: scan all roots, feed the newest timestamp to the debouncer, and
touch the marker once the quiet period has passed. Ticks run strictly one
after another on a single task, so the debounce state and the marker file
need no locking.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quietwatch.logging import VERBOSE, get_logger
from quietwatch.watching.debounce import (
    Clock,
    DebounceState,
    MonotonicClock,
    Transition,
    advance,
)
from quietwatch.watching.marker import touch_marker
from quietwatch.watching.scanner import ScanResult, scan
from quietwatch.watching.settings import WatchSettings

log = get_logger("runner")

TouchFn = Callable[[Path, str], str]


@dataclass
class WatchEvent:
    """Something the runner reports to its listener."""

    kind: str  # "change" or "touch"
    timestamp: float | None = None  # File mtime that armed the debouncer
    path: Path | None = None  # File that produced the timestamp, or the marker
    line: str | None = None  # Marker line written (touch only)
    observed_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for event payloads."""
        return {
            "kind": self.kind,
            "timestamp": self.timestamp,
            "path": str(self.path) if self.path else None,
            "line": self.line,
            "observed_at": self.observed_at,
        }


def describe_timestamp(timestamp: float) -> str:
    """Render a file mtime for status lines."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC"
    )


class WatchRunner:
    """Drives scanner, debouncer and marker update on a fixed interval.

    Example:
        runner = WatchRunner(settings, on_event=print)
        stop = asyncio.Event()
        await runner.run(stop)   # returns after stop.set()
    """

    def __init__(
        self,
        settings: WatchSettings,
        clock: Clock | None = None,
        on_event: Callable[[WatchEvent], None] | None = None,
        touch: TouchFn = touch_marker,
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Resolved watch settings.
            clock: Source of "now" for the quiet period (monotonic by default).
            on_event: Called for every change and marker update.
            touch: Marker update; receives the marker path and tag.
        """
        self._settings = settings
        self._clock: Clock = clock or MonotonicClock()
        self._on_event = on_event
        self._touch = touch

        self._state = DebounceState()
        self._touch_count = 0
        self._stop = asyncio.Event()
        self._running = False

    @property
    def settings(self) -> WatchSettings:
        return self._settings

    @property
    def state(self) -> DebounceState:
        """Debounce state after the most recent tick."""
        return self._state

    @property
    def touch_count(self) -> int:
        """Number of marker updates performed so far."""
        return self._touch_count

    def is_running(self) -> bool:
        return self._running

    def scan(self) -> ScanResult:
        s = self._settings
        return scan(s.roots, s.patterns, s.exclusions, s.marker_path)

    def tick(self) -> Transition:
        """Run one poll iteration.

        Returns:
            The debouncer transition for this tick.

        Raises:
            OSError: If the marker file cannot be read or written.
        """
        result = self.scan()
        transition = advance(
            self._state,
            result.timestamp,
            self._clock.now(),
            self._settings.quiet_period,
        )
        self._state = transition.state

        if transition.changed and result.timestamp is not None:
            log.log(
                VERBOSE,
                "Change seen at %s (%s)",
                describe_timestamp(result.timestamp),
                result.path,
            )
            self._emit(WatchEvent(kind="change", timestamp=result.timestamp, path=result.path))

        if transition.fire:
            line = self._touch(self._settings.marker_path, self._settings.tag)
            self._touch_count += 1
            log.log(VERBOSE, "Touched %s", self._settings.marker_path)
            self._emit(
                WatchEvent(
                    kind="touch",
                    timestamp=transition.state.highest_seen,
                    path=self._settings.marker_path,
                    line=line,
                )
            )

        return transition

    def _emit(self, event: WatchEvent) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception as e:
            log.error("Error in watch event callback: %s", e)

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Poll until ``stop`` (or :meth:`stop`) is set, or the task is cancelled.

        Args:
            stop: Optional external cancellation signal.

        Raises:
            OSError: If a marker update fails; the loop ends.
        """
        if self._running:
            log.warning("WatchRunner already running")
            return

        self._running = True
        log.info(
            "Watching %d root(s) (poll %.3fs, quiet %.3fs)",
            len(self._settings.roots),
            self._settings.poll_interval,
            self._settings.quiet_period,
        )

        try:
            while not self._should_stop(stop):
                self.tick()
                await self._wait(stop)
        except asyncio.CancelledError:
            log.info("WatchRunner cancelled")
        finally:
            self._running = False
            self._stop.clear()

    def stop(self) -> None:
        """Ask the loop to return after the current tick.

        A stop requested before :meth:`run` starts makes it return at once.
        """
        self._stop.set()

    def _should_stop(self, stop: asyncio.Event | None) -> bool:
        return self._stop.is_set() or (stop is not None and stop.is_set())

    async def _wait(self, stop: asyncio.Event | None) -> None:
        """Sleep one poll interval, waking early when a stop is requested."""
        waiters = [asyncio.ensure_future(self._stop.wait())]
        if stop is not None:
            waiters.append(asyncio.ensure_future(stop.wait()))
        try:
            await asyncio.wait(waiters, timeout=self._settings.poll_interval)
        finally:
            for waiter in waiters:
                waiter.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await waiter
