"""Quiet-period debouncing of scan results.

The debouncer decides when a burst of edits has settled. It is a pure
transition over an immutable DebounceState:

    IDLE  --new maximum-->  ARMED  --no new maximum for quiet_period-->  IDLE (fire)

Only a strictly greater timestamp counts as a change. Ties, older values and
empty scans neither arm nor disarm, and a new maximum while ARMED restarts
the quiet clock. The highest timestamp survives a fire, so a file that is
merely re-scanned never triggers twice.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Protocol


class Clock(Protocol):
    """Source of "now" for the quiet period, in seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


@dataclass(frozen=True)
class DebounceState:
    """Debouncer state carried from one poll tick to the next.

    Attributes:
        highest_seen: Largest scan timestamp observed so far (never decreases).
        pending: True while a marker update is owed (ARMED).
        last_change_at: Clock reading when ``highest_seen`` last increased.
    """

    highest_seen: float | None = None
    pending: bool = False
    last_change_at: float | None = None

    @property
    def armed(self) -> bool:
        return self.pending


@dataclass(frozen=True)
class Transition:
    """Result of feeding one scan sample to the debouncer."""

    state: DebounceState
    changed: bool = False  # A new maximum was observed this tick
    fire: bool = False  # The quiet period elapsed; the marker is owed now


def advance(
    state: DebounceState,
    observed: float | None,
    now: float,
    quiet_period: float,
) -> Transition:
    """Apply one poll tick.

    Args:
        state: State after the previous tick.
        observed: Newest timestamp from this tick's scan, or None.
        now: Current clock reading in seconds.
        quiet_period: Seconds without a new maximum before firing.

    Returns:
        Transition with the next state and what happened.
    """
    changed = False
    if observed is not None and (
        state.highest_seen is None or observed > state.highest_seen
    ):
        state = DebounceState(highest_seen=observed, pending=True, last_change_at=now)
        changed = True

    fire = False
    if (
        state.pending
        and state.last_change_at is not None
        and now - state.last_change_at >= quiet_period
    ):
        state = replace(state, pending=False)
        fire = True

    return Transition(state=state, changed=changed, fire=fire)


class Debouncer:
    """Holds the latest DebounceState and a clock around :func:`advance`."""

    def __init__(self, quiet_period: float, clock: Clock | None = None) -> None:
        self.quiet_period = quiet_period
        self.clock: Clock = clock or MonotonicClock()
        self.state = DebounceState()

    def feed(self, observed: float | None) -> Transition:
        transition = advance(self.state, observed, self.clock.now(), self.quiet_period)
        self.state = transition.state
        return transition
