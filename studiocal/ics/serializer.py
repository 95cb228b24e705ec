"""Render persisted calendar events as an iCalendar (RFC 5545) document."""

import logging
from enum import Enum
from typing import Any, Iterable, List, Optional

from icalendar.prop import vText

from .datetime_utils import format_to_ical_utc
from .models import Attendee, CalendarEvent

logger = logging.getLogger(__name__)

CRLF = "\r\n"
DEFAULT_PRODID = "-//New Age Fotografie//Studio Calendar//EN"

# Parameter values containing these must be quoted (RFC 5545 section 3.2)
_PARAM_UNSAFE_CHARS = (":", ";", ",")


def _value(field: Any) -> str:
    """Return the plain string for an enum or string field."""
    if isinstance(field, Enum):
        return str(field.value)
    return str(field)


def escape_text(value: Optional[str]) -> str:
    """Escape a TEXT property value (backslash, semicolon, comma, newline)."""
    if not value:
        return ""
    return vText(value).to_ical().decode("utf-8")


def _param_value(value: str) -> str:
    """Quote a parameter value when it contains separator characters."""
    value = value.replace('"', "'")
    if any(ch in value for ch in _PARAM_UNSAFE_CHARS):
        return f'"{value}"'
    return value


def serialize_attendee(attendee: Attendee) -> str:
    """Build one ATTENDEE line."""
    common_name = _param_value(attendee.name or attendee.email)
    role = _value(attendee.role).upper()
    status = _value(attendee.status).upper()
    return (
        f"ATTENDEE;CN={common_name};ROLE={role};PARTSTAT={status}"
        f":mailto:{attendee.email}"
    )


def serialize_event(event: CalendarEvent) -> List[str]:
    """Build the VEVENT lines for a single event."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{event.ical_uid}",
        f"DTSTART:{format_to_ical_utc(event.start_time)}",
        f"DTEND:{format_to_ical_utc(event.end_time)}",
        f"SUMMARY:{escape_text(event.title)}",
        f"DESCRIPTION:{escape_text(event.description)}",
        f"LOCATION:{escape_text(event.location)}",
        f"STATUS:{_value(event.status).upper()}",
        f"CREATED:{format_to_ical_utc(event.created_at)}",
        f"LAST-MODIFIED:{format_to_ical_utc(event.updated_at)}",
    ]

    lines.extend(serialize_attendee(attendee) for attendee in event.attendees or [])

    # Rule body is passed through untouched
    if event.is_recurring and event.recurrence_rule:
        lines.append(f"RRULE:{event.recurrence_rule}")

    lines.append("END:VEVENT")
    return lines


def export_to_ical(
    events: Iterable[CalendarEvent],
    prodid: str = DEFAULT_PRODID,
    calendar_name: Optional[str] = None,
    calendar_description: Optional[str] = None,
) -> str:
    """Render events as a complete VCALENDAR document.

    Args:
        events: Persisted events, already filtered by the caller
        prodid: PRODID value for the calendar header
        calendar_name: Optional X-WR-CALNAME
        calendar_description: Optional X-WR-CALDESC

    Returns:
        CRLF-separated iCal text without a trailing line break

    Raises:
        ICSDateError: If an event carries a malformed date
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    if calendar_name:
        lines.append(f"X-WR-CALNAME:{escape_text(calendar_name)}")
    if calendar_description:
        lines.append(f"X-WR-CALDESC:{escape_text(calendar_description)}")

    count = 0
    for event in events:
        lines.extend(serialize_event(event))
        count += 1

    lines.append("END:VCALENDAR")
    logger.debug(f"Serialized {count} events to iCal")
    return CRLF.join(lines)
