"""Import orchestration: parse iCal text and create events one by one."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Tuple

from dateutil import parser as date_parser

from .datetime_utils import ensure_utc
from .models import CalendarEventDraft, ImportOptions, ImportResult
from .parser import parse_ical

if TYPE_CHECKING:
    from ..storage.protocols import EventStore

logger = logging.getLogger(__name__)


class ICSImporter:
    """Creates events from iCal text through an event store.

    Drafts are created sequentially. A failing create is recorded in the
    result and never aborts the rest of the batch; nothing is rolled back.
    """

    def __init__(self, store: "EventStore", settings: Any = None) -> None:
        """Initialize importer.

        Args:
            store: Event store used to persist drafts
            settings: Application settings (optional)
        """
        self.store = store
        self.settings = settings
        self.default_tz = getattr(settings, "default_timezone", "UTC") or "UTC"
        logger.debug("ICS importer initialized")

    async def import_from_ical(
        self,
        ics_content: str,
        calendar_id: str,
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        """Import every complete VEVENT in ``ics_content`` into ``calendar_id``.

        Args:
            ics_content: Raw iCal text
            calendar_id: Target calendar for all created events
            options: Dry run, duplicate skipping and date window settings

        Returns:
            Counts of imported and skipped events plus one message per failure
        """
        options = options or self.default_options()
        drafts = parse_ical(ics_content, default_tz=self.default_tz)
        result = ImportResult(dry_run=options.dry_run)

        window_start, window_end = self._resolve_window(options)

        for draft in drafts:
            if self._outside_window(draft, window_start, window_end):
                result.skipped += 1
                continue

            try:
                if options.skip_duplicates and draft.uid:
                    existing = await self.store.find_event_by_ical_uid(draft.uid)
                    if existing is not None:
                        logger.debug(f"Skipping duplicate event {draft.uid}")
                        result.skipped += 1
                        continue

                if options.dry_run:
                    result.drafts.append(draft)
                else:
                    await self.store.create_event(draft.to_create_data(calendar_id))
                result.imported += 1

            except Exception as e:
                error = f'Failed to import event "{draft.title}": {e}'
                logger.warning(error)
                result.add_error(error)

        logger.info(
            f"iCal import into {calendar_id}: {result.imported} imported, "
            f"{result.skipped} skipped, {result.warning_count} failed"
            + (" (dry run)" if options.dry_run else "")
        )
        return result

    def default_options(self) -> ImportOptions:
        """Options used when the caller passes none, honouring configured defaults."""
        return ImportOptions(skip_duplicates=bool(getattr(self.settings, "skip_duplicates", False)))

    @staticmethod
    def _resolve_window(options: ImportOptions) -> Tuple[Optional[datetime], Optional[datetime]]:
        window_start = options.window_start
        if window_start is None and not options.include_past:
            window_start = datetime.now(timezone.utc)
        return (
            ensure_utc(window_start) if window_start else None,
            ensure_utc(options.window_end) if options.window_end else None,
        )

    @staticmethod
    def _outside_window(
        draft: CalendarEventDraft,
        window_start: Optional[datetime],
        window_end: Optional[datetime],
    ) -> bool:
        if window_start and date_parser.isoparse(draft.end_time) < window_start:
            return True
        if window_end and date_parser.isoparse(draft.start_time) > window_end:
            return True
        return False
