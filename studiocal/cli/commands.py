"""Implementations of the ``export``, ``import`` and ``serve`` commands."""

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ..ics.exceptions import ICSError
from ..ics.models import ImportOptions, ImportResult
from ..ics.service import CalendarInterchange
from ..storage import EventDatabase, StorageError
from ..web.server import run_server

if TYPE_CHECKING:
    from ..config.settings import StudioCalSettings

logger = logging.getLogger(__name__)


def create_interchange(settings: "StudioCalSettings") -> CalendarInterchange:
    """Build the interchange service on top of the configured SQLite store."""
    store = EventDatabase(settings.database_file, uid_domain=settings.uid_domain)
    return CalendarInterchange(store, settings)


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _print_import_summary(result: ImportResult) -> None:
    if result.dry_run:
        print(f"Dry run: {result.imported} events would be imported")
        for draft in result.drafts:
            print(f"  {draft.start_time}  {draft.title}")
    else:
        print(f"Imported {result.imported} events")

    if result.skipped:
        print(f"Skipped {result.skipped} events")

    if result.errors:
        print(f"{result.warning_count} events failed:")
        for error in result.errors:
            print(f"  - {error}")


async def run_export(args: argparse.Namespace, settings: "StudioCalSettings") -> int:
    """Write matching events as an iCal document to a file or stdout.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    interchange = create_interchange(settings)

    try:
        content = await interchange.export_to_ical(
            calendar_id=args.calendar_id, user_id=args.user_id
        )
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        # newline="" keeps the CRLF line endings intact
        with open(args.output, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        logger.info(f"Wrote calendar to {args.output}")
    else:
        sys.stdout.write(content)
        sys.stdout.write("\n")

    return 0


async def run_import(args: argparse.Namespace, settings: "StudioCalSettings") -> int:
    """Import an .ics file or URL into the target calendar.

    Per-event failures are reported but do not change the exit code.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    interchange = create_interchange(settings)

    skip_duplicates = args.skip_duplicates
    if skip_duplicates is None:
        skip_duplicates = settings.skip_duplicates

    options = ImportOptions(
        dry_run=args.dry_run,
        skip_duplicates=skip_duplicates,
        window_start=args.window_start,
        window_end=args.window_end,
        include_past=not args.exclude_past,
    )

    try:
        if _is_url(args.source):
            result = await interchange.import_from_url(args.source, args.calendar_id, options)
        else:
            content = Path(args.source).read_text(encoding="utf-8")
            result = await interchange.import_from_ical(content, args.calendar_id, options)
    except OSError as e:
        print(f"Error: cannot read {args.source}: {e}", file=sys.stderr)
        return 1
    except ICSError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    _print_import_summary(result)
    return 0


async def run_serve(args: argparse.Namespace, settings: "StudioCalSettings") -> int:
    """Run the web server until interrupted.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    interchange = create_interchange(settings)

    try:
        await run_server(interchange, settings, host=args.host, port=args.port)
    except OSError as e:
        print(f"Error: could not start server: {e}", file=sys.stderr)
        return 1

    return 0
