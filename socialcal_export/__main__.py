"""Command-line entry for socialcal_export."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Optional, Sequence

from . import run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for socialcal_export CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="socialcal-export",
        description="Serve users' calendar events as iCalendar (.ics) downloads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m socialcal_export                           # Serve on default port (8080)
  python -m socialcal_export --port 3000               # Serve on port 3000
  python -m socialcal_export --events-file events.json # Serve events from a JSON file
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or from SOCIALCAL_WEB_PORT env var)",
    )
    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Address to bind (default: 0.0.0.0, or from SOCIALCAL_WEB_HOST env var)",
    )
    parser.add_argument(
        "--events-file",
        metavar="PATH",
        help="Serve events from a JSON file instead of the configured store",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for socialcal_export modules",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Run the socialcal_export CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        run_server(args)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0)


if __name__ == "__main__":
    main()
