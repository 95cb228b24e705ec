"""Command-line argument parsing for StudioCal."""

import argparse
from datetime import datetime, timezone

LOG_LEVELS = ["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_date(date_str: str) -> datetime:
    """Parse date string in YYYY-MM-DD format for command-line arguments.

    Args:
        date_str: Date string to parse in YYYY-MM-DD format

    Returns:
        UTC datetime at midnight of that day

    Raises:
        argparse.ArgumentTypeError: If the date is not in YYYY-MM-DD format

    Example:
        >>> parse_date("2025-03-01")
        datetime.datetime(2025, 3, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as err:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD"
        ) from err


def create_parser() -> argparse.ArgumentParser:
    """Create the ``studiocal`` argument parser with its subcommands.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="studiocal",
        description="StudioCal - iCal export and import for studio booking calendars",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  studiocal export --calendar-id cal-1 -o sessions.ics
  studiocal import bookings.ics --calendar-id cal-1 --dry-run
  studiocal import https://example.com/feed.ics --calendar-id cal-1 --skip-duplicates
  studiocal serve --port 8080
        """,
    )

    parser.add_argument("--config", metavar="FILE", help="Path to a YAML configuration file")

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Console and file log level",
    )
    logging_group.add_argument(
        "--verbose", "-v", action="store_true", help="Enable VERBOSE console logging"
    )
    logging_group.add_argument(
        "--quiet", "-q", action="store_true", help="Only show errors on the console"
    )
    logging_group.add_argument(
        "--log-file", action="store_true", help="Also write a rotating log file"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    export_parser = subparsers.add_parser("export", help="Write events as an .ics document")
    export_parser.add_argument("--calendar-id", help="Only export events from this calendar")
    export_parser.add_argument("--user-id", help="Only export events created by this user")
    export_parser.add_argument(
        "-o", "--output", metavar="FILE", help="Output file (defaults to stdout)"
    )

    import_parser = subparsers.add_parser("import", help="Import events from an .ics file or URL")
    import_parser.add_argument("source", metavar="SOURCE", help="Path or http(s) URL of the feed")
    import_parser.add_argument("--calendar-id", required=True, help="Target calendar id")
    import_parser.add_argument(
        "--dry-run", action="store_true", help="Parse and report without creating events"
    )
    import_parser.add_argument(
        "--skip-duplicates",
        action="store_true",
        default=None,
        help="Skip events whose UID already exists",
    )
    import_parser.add_argument(
        "--from",
        dest="window_start",
        type=parse_date,
        metavar="YYYY-MM-DD",
        help="Skip events ending before this date",
    )
    import_parser.add_argument(
        "--to",
        dest="window_end",
        type=parse_date,
        metavar="YYYY-MM-DD",
        help="Skip events starting after this date",
    )
    import_parser.add_argument(
        "--exclude-past", action="store_true", help="Skip events that have already ended"
    )

    serve_parser = subparsers.add_parser("serve", help="Serve the feed and import endpoint")
    serve_parser.add_argument("--host", help="Bind address (defaults to settings.web_host)")
    serve_parser.add_argument(
        "--port", type=int, help="Port number (defaults to settings.web_port)"
    )

    return parser


__all__ = ["create_parser", "parse_date"]
