"""Calendar interchange entry points used by the CLI and web server."""

import logging
from typing import TYPE_CHECKING, Any, Optional

from .exceptions import ICSFetchError, ICSImportError
from .fetcher import ICSFetcher
from .importer import ICSImporter
from .models import ImportOptions, ImportResult
from .serializer import DEFAULT_PRODID, export_to_ical

if TYPE_CHECKING:
    from ..storage.protocols import EventStore

logger = logging.getLogger(__name__)


class CalendarInterchange:
    """Export events from, and import events into, an event store."""

    def __init__(self, store: "EventStore", settings: Any = None) -> None:
        """Initialize interchange service.

        Args:
            store: Event store providing list/create operations
            settings: Application settings (optional)
        """
        self.store = store
        self.settings = settings
        self.importer = ICSImporter(store, settings)

    async def export_to_ical(
        self, calendar_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> str:
        """Render the matching events as a text/calendar document.

        Args:
            calendar_id: Only export events from this calendar
            user_id: Only export events created by this user

        Returns:
            Complete VCALENDAR document
        """
        events = await self.store.list_events(calendar_id=calendar_id, created_by=user_id)
        logger.info(f"Exporting {len(events)} events (calendar={calendar_id}, user={user_id})")

        return export_to_ical(
            events,
            prodid=getattr(self.settings, "prodid", DEFAULT_PRODID) or DEFAULT_PRODID,
            calendar_name=getattr(self.settings, "calendar_name", None),
            calendar_description=getattr(self.settings, "calendar_description", None),
        )

    async def import_from_ical(
        self,
        ics_content: str,
        calendar_id: str,
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        """Import raw iCal text (e.g. an uploaded .ics file) into a calendar."""
        if not calendar_id:
            raise ICSImportError("A target calendar id is required")
        return await self.importer.import_from_ical(ics_content, calendar_id, options)

    async def import_from_url(
        self,
        url: str,
        calendar_id: str,
        options: Optional[ImportOptions] = None,
    ) -> ImportResult:
        """Fetch an iCal feed and import it into a calendar.

        Raises:
            ICSFetchError: If the feed could not be downloaded or a redirect was blocked
            ICSTimeoutError: If every fetch attempt timed out
        """
        async with ICSFetcher(self.settings) as fetcher:
            response = await fetcher.fetch_ics(url)

        if not response.success or response.content is None:
            raise ICSFetchError(
                f"Failed to fetch calendar: {response.error_message or 'no content'}",
                response.status_code,
            )

        logger.info(f"Fetched {response.content_length} bytes from {url}")
        return await self.import_from_ical(response.content, calendar_id, options)
