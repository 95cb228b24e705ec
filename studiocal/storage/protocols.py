"""Interface the interchange layer expects from event persistence."""

from datetime import datetime
from typing import List, Optional, Protocol

from ..ics.models import CalendarEvent, CreateEventData


class EventStore(Protocol):
    """Persistence collaborator for calendar events."""

    async def create_event(self, data: CreateEventData) -> CalendarEvent:
        """Persist a new event and return it with generated fields filled in."""
        ...

    async def list_events(
        self,
        calendar_id: Optional[str] = None,
        created_by: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Return events ordered by start time, optionally filtered."""
        ...

    async def find_event_by_ical_uid(self, ical_uid: str) -> Optional[CalendarEvent]:
        """Return the event with the given iCal UID, if any."""
        ...
