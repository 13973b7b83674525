"""Command-line interface for quietwatch."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape

from quietwatch import __version__
from quietwatch.config import ConfigError, load_config, resolve_settings
from quietwatch.logging import get_logger, setup_logging
from quietwatch.watching.runner import WatchEvent, WatchRunner, describe_timestamp
from quietwatch.watching.settings import WatchSettings

log = get_logger("cli")

console = Console(stderr=True, highlight=False)

EXIT_OK = 0
EXIT_MARKER_FAILED = 1
EXIT_CONFIG_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="quietwatch",
        description=(
            "Watch source files and, once edits settle, rewrite a timestamp "
            "line in a marker file to trigger a rebuild"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress the startup banner",
    )
    parser.add_argument(
        "--root",
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--target",
        help="Marker file relative to the project root (default: _quarto.yml)",
    )
    parser.add_argument(
        "--watch",
        help="Watch roots relative to the project root, ';'-separated",
    )
    parser.add_argument(
        "--exclude",
        help="Directory names to ignore, ';'-separated",
    )
    parser.add_argument(
        "--patterns",
        help="Filename globs to watch, ';'-separated (e.g. '*.qmd;*.md')",
    )
    parser.add_argument(
        "--poll-ms",
        type=int,
        help="Poll interval in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--quiet-ms",
        type=int,
        help="Quiet period in milliseconds before touching the marker (default: 1500)",
    )
    parser.add_argument(
        "--tag",
        help="Prefix of the marker line (default: '# quietwatch: ')",
    )
    parser.add_argument(
        "--log-file",
        help="Append diagnostics to this file",
    )
    return parser


def overrides_from_args(parsed: argparse.Namespace) -> dict[str, Any]:
    """Build a config-shaped dict from parsed flags (unset flags stay None)."""
    return {
        "watch": {
            "project_root": parsed.root,
            "target": parsed.target,
            "watch": parsed.watch,
            "exclude": parsed.exclude,
            "patterns": parsed.patterns,
            "poll_interval_ms": parsed.poll_ms,
            "quiet_period_ms": parsed.quiet_ms,
            "tag": parsed.tag,
        },
        "logging": {
            # -v counts from "info" upward; no flag leaves config in charge
            "verbose": 2 + parsed.verbose if parsed.verbose else None,
            "file": parsed.log_file,
        },
    }


def print_banner(settings: WatchSettings) -> None:
    """Print the resolved settings at startup."""
    console.print("[bold]quietwatch[/bold] watching:")
    for root in settings.roots:
        console.print(f"  {escape(str(root))}")
    exclude = ", ".join(settings.exclusions) or "(none)"
    patterns = ", ".join(settings.patterns) or "(none)"
    console.print(f"[dim]Exclude:[/dim]  {escape(exclude)}")
    console.print(f"[dim]Patterns:[/dim] {escape(patterns)}")
    console.print(
        f"[dim]Poll:[/dim] {settings.poll_interval * 1000:.0f} ms  "
        f"[dim]Quiet:[/dim] {settings.quiet_period * 1000:.0f} ms"
    )
    console.print(f"[dim]Target:[/dim]   {escape(str(settings.marker_path))}")
    console.print("[dim]Press Ctrl+C to stop.[/dim]")


def print_event(event: WatchEvent) -> None:
    """Print one status line per change or marker update."""
    if event.kind == "change" and event.timestamp is not None:
        path = escape(str(event.path)) if event.path else ""
        console.print(
            f"[yellow]Change seen[/yellow] at {describe_timestamp(event.timestamp)}"
            f" [dim]{path}[/dim]"
        )
    elif event.kind == "touch":
        console.print(
            f"[green]Touched[/green] {escape(str(event.path))}"
            f" [dim]{escape(event.line or '')}[/dim]"
        )


def run_cli(args: Sequence[str] | None = None) -> int:
    """Run the CLI with the given arguments.

    Returns:
        Process exit code.
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    try:
        config = load_config(overrides=overrides_from_args(parsed))
        setup_logging(config.logging)
        settings = resolve_settings(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return EXIT_CONFIG_ERROR

    if not parsed.quiet:
        print_banner(settings)

    runner = WatchRunner(settings, on_event=print_event)

    # Ctrl+C cancels the loop, which returns quietly; KeyboardInterrupt only
    # surfaces when it arrives outside the loop
    try:
        asyncio.run(runner.run())
    except KeyboardInterrupt:
        pass
    except OSError as e:
        log.error("Marker update failed: %s", e)
        console.print(f"[red]Marker update failed:[/red] {escape(str(e))}")
        return EXIT_MARKER_FAILED

    console.print("[dim]Stopped.[/dim]")
    return EXIT_OK
