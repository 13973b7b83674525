"""Marker-file update that signals the downstream rebuild.

The marker is usually a project config (``_quarto.yml``) whose modification
the preview server already reacts to. Its last line carries a tagged
timestamp comment that is rewritten in place on every update.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from quietwatch.config.schema import DEFAULT_TAG
from quietwatch.logging import VERBOSE, get_logger

log = get_logger("marker")


def format_timestamp(moment: datetime) -> str:
    """Format an instant as ISO 8601 UTC with second precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def touch_marker(
    marker_path: Path,
    tag: str = DEFAULT_TAG,
    now: datetime | None = None,
) -> str:
    """Rewrite or append the tagged timestamp line of the marker file.

    If the last line starts with ``tag`` it is replaced, otherwise a new line
    is appended. The file keeps its line terminator and is written back as
    UTF-8 without a byte-order mark, even if it was read with one.

    Args:
        marker_path: File to update.
        tag: Prefix identifying the marker line (e.g. ``"# quietwatch: "``).
        now: Instant to record; defaults to the current time.

    Returns:
        The marker line that was written.

    Raises:
        OSError: If the file cannot be read or written. Not retried.
    """
    line = tag + format_timestamp(now or datetime.now(timezone.utc))

    # newline="" keeps "\r\n" visible so it can be written back unchanged
    with open(marker_path, encoding="utf-8-sig", newline="") as f:
        text = f.read()

    newline = "\r\n" if "\r\n" in text else "\n"
    # Not splitlines(): that also breaks on \f, \x85 and \u2028
    body = text[: -len(newline)] if text.endswith(newline) else text
    lines = body.split(newline) if text else []

    if lines and lines[-1].startswith(tag):
        lines[-1] = line
    else:
        lines.append(line)

    with open(marker_path, "w", encoding="utf-8", newline="") as f:
        f.write(newline.join(lines) + newline)

    log.log(VERBOSE, "Wrote marker line to %s: %s", marker_path, line)
    return line
