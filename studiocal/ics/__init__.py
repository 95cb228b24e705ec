"""iCal import and export module."""

from .datetime_utils import format_to_ical_utc, parse_ical_date, parse_ical_date_to_iso
from .exceptions import (
    ICSAuthError,
    ICSContentError,
    ICSDateError,
    ICSError,
    ICSFetchError,
    ICSImportError,
    ICSNetworkError,
    ICSParseError,
    ICSTimeoutError,
)
from .fetcher import ICSFetcher
from .importer import ICSImporter
from .models import (
    Attendee,
    AttendeeRole,
    AttendeeStatus,
    CalendarEvent,
    CalendarEventDraft,
    CreateEventData,
    EventStatus,
    ICSResponse,
    ImportOptions,
    ImportResult,
)
from .parser import ICalLineParser, parse_ical
from .serializer import export_to_ical
from .service import CalendarInterchange

__all__ = [
    "Attendee",
    "AttendeeRole",
    "AttendeeStatus",
    "CalendarEvent",
    "CalendarEventDraft",
    "CalendarInterchange",
    "CreateEventData",
    "EventStatus",
    "ICSAuthError",
    "ICSContentError",
    "ICSDateError",
    "ICSError",
    "ICSFetchError",
    "ICSFetcher",
    "ICSImportError",
    "ICSImporter",
    "ICSNetworkError",
    "ICSParseError",
    "ICSResponse",
    "ICSTimeoutError",
    "ICalLineParser",
    "ImportOptions",
    "ImportResult",
    "export_to_ical",
    "format_to_ical_utc",
    "parse_ical",
    "parse_ical_date",
    "parse_ical_date_to_iso",
]
