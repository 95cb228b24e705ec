"""Line-oriented iCalendar parser producing draft events for import."""

import logging
import re
from typing import Any, Dict, List, Optional

from icalendar.parser import Contentline
from icalendar.prop import vText
from pydantic import ValidationError

from .datetime_utils import ISO_UTC_FORMAT, parse_ical_date
from .exceptions import ICSDateError
from .models import CalendarEventDraft

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")

TEXT_PROPERTIES = {
    "SUMMARY": "title",
    "DESCRIPTION": "description",
    "LOCATION": "location",
    "UID": "uid",
}

DATE_PROPERTIES = {
    "DTSTART": "start_time",
    "DTEND": "end_time",
}


def unfold_lines(ics_content: str) -> List[str]:
    """Split iCal text into logical lines, joining folded continuations.

    Args:
        ics_content: Raw iCal text with CRLF (or bare LF/CR) line breaks

    Returns:
        List of unfolded content lines
    """
    lines: List[str] = []
    for raw_line in _LINE_BREAK_RE.split(ics_content):
        if raw_line.startswith((" ", "\t")) and lines:
            lines[-1] += raw_line[1:]
        else:
            lines.append(raw_line)
    return lines


def _first_param(params: Any, name: str) -> Optional[str]:
    """Return a single parameter value, taking the first of a list."""
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    return str(value) if value else None


class ICalLineParser:
    """Parse VEVENT blocks into CalendarEventDraft records.

    Only SUMMARY, DESCRIPTION, LOCATION, UID, DTSTART and DTEND are read.
    Blocks missing a title, start or end are dropped without raising.
    """

    def __init__(self, default_tz: str = "UTC") -> None:
        """Initialize parser.

        Args:
            default_tz: Zone used for floating DTSTART/DTEND values
        """
        self.default_tz = default_tz
        self._in_event = False
        self._nested_depth = 0
        self._current: Dict[str, Any] = {}
        self._drafts: List[CalendarEventDraft] = []
        self._dropped = 0

    def _reset(self) -> None:
        self._in_event = False
        self._nested_depth = 0
        self._current = {}
        self._drafts = []
        self._dropped = 0

    def parse(self, ics_content: str) -> List[CalendarEventDraft]:
        """Parse iCal text into draft events, in document order."""
        self._reset()
        if not ics_content or not ics_content.strip():
            logger.debug("Empty iCal content, nothing to parse")
            return []

        for line in unfold_lines(ics_content):
            self._process_line(line)

        if self._in_event:
            logger.debug("Unterminated VEVENT at end of input dropped")
            self._dropped += 1

        logger.debug(
            f"Parsed {len(self._drafts)} events from iCal content "
            f"({self._dropped} incomplete blocks dropped)"
        )
        return list(self._drafts)

    def _process_line(self, line: str) -> None:
        marker = line.strip().upper()

        if marker == "BEGIN:VEVENT":
            self._in_event = True
            self._nested_depth = 0
            self._current = {}
            return

        if marker == "END:VEVENT":
            if self._in_event:
                self._finish_event()
            self._in_event = False
            return

        if not self._in_event:
            return

        # Properties of nested components (VALARM) do not belong to the event
        if marker.startswith("BEGIN:"):
            self._nested_depth += 1
            return
        if marker.startswith("END:"):
            self._nested_depth = max(0, self._nested_depth - 1)
            return
        if self._nested_depth:
            return

        self._process_property(line)

    def _process_property(self, line: str) -> None:
        if ":" not in line:
            return

        try:
            name, params, value = Contentline(line).parts()
        except ValueError:
            logger.debug(f"Ignoring unparseable content line: {line[:80]!r}")
            return

        # Match on the property name, parameters are split off by parts()
        name = name.upper()

        if name in TEXT_PROPERTIES:
            text = str(vText.from_ical(value))
            if text:
                self._current[TEXT_PROPERTIES[name]] = text
            return

        if name in DATE_PROPERTIES:
            tzid = _first_param(params, "TZID")
            try:
                dt, is_date = parse_ical_date(value, tzid=tzid, default_tz=self.default_tz)
            except ICSDateError as e:
                logger.debug(f"Ignoring {name} with invalid date: {e}")
                return
            self._current[DATE_PROPERTIES[name]] = dt.strftime(ISO_UTC_FORMAT)
            if name == "DTSTART":
                self._current["all_day"] = is_date

    def _finish_event(self) -> None:
        current = self._current
        self._current = {}

        if not (current.get("title") and current.get("start_time") and current.get("end_time")):
            logger.debug(f"Dropping incomplete VEVENT (fields: {sorted(current)})")
            self._dropped += 1
            return

        try:
            self._drafts.append(CalendarEventDraft(**current))
        except ValidationError as e:
            logger.debug(f"Dropping invalid VEVENT: {e}")
            self._dropped += 1


def parse_ical(ics_content: str, default_tz: str = "UTC") -> List[CalendarEventDraft]:
    """Parse raw iCal text into draft events.

    Args:
        ics_content: Raw iCal text
        default_tz: Zone used for floating DTSTART/DTEND values

    Returns:
        Draft events for every complete VEVENT block, in document order
    """
    return ICalLineParser(default_tz=default_tz).parse(ics_content)
