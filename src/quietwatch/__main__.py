"""Entry point for running quietwatch from the command line.

Usage:
    python -m quietwatch --watch docs --target _quarto.yml

Polls the watch roots until interrupted with Ctrl+C.
"""

import sys

from quietwatch.cli import run_cli


def main() -> None:
    """Run quietwatch and exit with its status code."""
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
