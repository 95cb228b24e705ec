"""Conversion between ISO-8601 timestamps and iCal date/date-time values.

Everything leaving this module is UTC. Incoming iCal values may be in the
basic UTC form (``20250301T103000Z``), floating local form, ``TZID``
qualified, or bare dates (``20250301``).
"""

import logging
import re
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from icalendar.prop import vDDDTypes

from .exceptions import ICSDateError

logger = logging.getLogger(__name__)

UTC = timezone.utc

ICAL_UTC_FORMAT = "%Y%m%dT%H%M%SZ"
ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Truncated forms such as 20250301T1030 that the icalendar grammar rejects.
# Missing hour/minute/second default to 00.
_LENIENT_DATE_RE = re.compile(
    r"^(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2})?(?P<minute>\d{2})?(?P<second>\d{2})?)?(?P<utc>Z)?$"
)


def _resolve_zone(tzid: Optional[str], default_tz: str) -> ZoneInfo:
    """Return the zone for ``tzid``, falling back to ``default_tz``."""
    if tzid:
        try:
            return ZoneInfo(tzid)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown TZID '{tzid}', using {default_tz}")
    return ZoneInfo(default_tz)


def ensure_utc(dt: datetime, default_tz: str = "UTC") -> datetime:
    """Convert ``dt`` to an aware UTC datetime; naive values are read in ``default_tz``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(default_tz))
    return dt.astimezone(UTC)


def to_iso_utc(dt: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return ensure_utc(dt).strftime(ISO_UTC_FORMAT)


def format_to_ical_utc(value: Union[str, datetime]) -> str:
    """Format an ISO-8601 string or datetime as an iCal UTC timestamp.

    Sub-second precision is truncated and naive values are taken as UTC.

    Args:
        value: ISO-8601 string (e.g. ``2025-03-01T10:30:00.000Z``) or datetime

    Returns:
        Basic-format UTC timestamp, e.g. ``20250301T103000Z``

    Raises:
        ICSDateError: If ``value`` is not a parseable date
    """
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError) as e:
            raise ICSDateError(f"Invalid ISO date-time: {value!r}") from e

    return ensure_utc(dt).strftime(ICAL_UTC_FORMAT)


def _parse_lenient(value: str) -> Tuple[datetime, bool, bool]:
    """Fixed-width fallback for values the iCal grammar rejects.

    Returns:
        Tuple of (naive datetime, is_date, is_utc)
    """
    match = _LENIENT_DATE_RE.match(value)
    if not match:
        raise ICSDateError(f"Invalid iCal date: {value!r}")

    parts = match.groupdict()
    try:
        dt = datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"] or "00"),
            int(parts["minute"] or "00"),
            int(parts["second"] or "00"),
        )
    except ValueError as e:
        raise ICSDateError(f"Invalid iCal date: {value!r}") from e

    is_date = "T" not in value
    return dt, is_date, bool(parts["utc"])


def parse_ical_date(
    value: str, tzid: Optional[str] = None, default_tz: str = "UTC"
) -> Tuple[datetime, bool]:
    """Parse an iCal DATE or DATE-TIME value into an aware UTC datetime.

    Args:
        value: Raw property value, e.g. ``20250301T103000Z`` or ``20250301``
        tzid: Value of the ``TZID`` parameter, if any
        default_tz: Zone used for floating times without ``TZID``

    Returns:
        Tuple of (UTC datetime, is_date). Bare dates map to midnight UTC.

    Raises:
        ICSDateError: If the value is not a date or date-time
    """
    if not value or not value.strip():
        raise ICSDateError("Empty iCal date")
    value = value.strip()

    try:
        parsed = vDDDTypes.from_ical(value)
    except ValueError:
        parsed = None

    if isinstance(parsed, datetime):
        if parsed.tzinfo is not None:
            return parsed.astimezone(UTC), False
        return parsed.replace(tzinfo=_resolve_zone(tzid, default_tz)).astimezone(UTC), False

    if isinstance(parsed, date):
        return datetime.combine(parsed, time(0, 0), tzinfo=UTC), True

    # Durations, periods and times are not usable as DTSTART/DTEND here
    dt, is_date, is_utc = _parse_lenient(value)
    logger.debug(f"Parsed truncated iCal date {value!r} with defaults")
    if is_date or is_utc:
        return dt.replace(tzinfo=UTC), is_date
    return dt.replace(tzinfo=_resolve_zone(tzid, default_tz)).astimezone(UTC), False


def parse_ical_date_to_iso(
    value: str, tzid: Optional[str] = None, default_tz: str = "UTC"
) -> str:
    """Parse an iCal date token into ``YYYY-MM-DDTHH:MM:SSZ``.

    >>> parse_ical_date_to_iso("20250301T103000Z")
    '2025-03-01T10:30:00Z'
    >>> parse_ical_date_to_iso("20250301")
    '2025-03-01T00:00:00Z'
    """
    dt, _ = parse_ical_date(value, tzid=tzid, default_tz=default_tz)
    return dt.strftime(ISO_UTC_FORMAT)
