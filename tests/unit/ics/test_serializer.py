"""Unit tests for the iCal serializer."""

import pytest

from studiocal.ics.exceptions import ICSDateError
from studiocal.ics.models import Attendee, AttendeeRole, AttendeeStatus, EventStatus
from studiocal.ics.serializer import (
    DEFAULT_PRODID,
    escape_text,
    export_to_ical,
    serialize_attendee,
    serialize_event,
)


@pytest.mark.unit
class TestExportToICal:
    """Tests for whole-document rendering."""

    def test_export_when_no_events_then_header_and_footer_only(self):
        result = export_to_ical([])

        assert result == "\r\n".join(
            [
                "BEGIN:VCALENDAR",
                "VERSION:2.0",
                f"PRODID:{DEFAULT_PRODID}",
                "CALSCALE:GREGORIAN",
                "METHOD:PUBLISH",
                "END:VCALENDAR",
            ]
        )

    def test_export_uses_crlf_without_trailing_break(self, make_event):
        result = export_to_ical([make_event()])

        assert "\r\n" in result
        assert "\n" not in result.replace("\r\n", "")
        assert result.endswith("END:VCALENDAR")

    def test_export_when_calendar_name_then_x_wr_headers(self):
        result = export_to_ical(
            [], prodid="-//Test//EN", calendar_name="Sessions", calendar_description="Bookings"
        )
        lines = result.split("\r\n")

        assert lines[2] == "PRODID:-//Test//EN"
        assert "X-WR-CALNAME:Sessions" in lines
        assert "X-WR-CALDESC:Bookings" in lines
        assert lines.index("X-WR-CALNAME:Sessions") < lines.index("END:VCALENDAR")

    def test_export_keeps_caller_order(self, make_event):
        events = [
            make_event(id="b", ical_uid="b@x", title="Second"),
            make_event(id="a", ical_uid="a@x", title="First"),
        ]

        result = export_to_ical(events)

        assert result.index("UID:b@x") < result.index("UID:a@x")
        assert result.count("BEGIN:VEVENT") == 2
        assert result.count("END:VEVENT") == 2


@pytest.mark.unit
class TestSerializeEvent:
    """Tests for single VEVENT rendering."""

    def test_serialize_emits_properties_in_order(self, make_event):
        lines = serialize_event(make_event())

        assert lines == [
            "BEGIN:VEVENT",
            "UID:evt-1@newagefotografie.com",
            "DTSTART:20250301T103000Z",
            "DTEND:20250301T113000Z",
            "SUMMARY:Family Portrait",
            "DESCRIPTION:Outdoor session",
            "LOCATION:Schönbrunn Park",
            "STATUS:CONFIRMED",
            "CREATED:20250201T090000Z",
            "LAST-MODIFIED:20250202T090000Z",
            "END:VEVENT",
        ]

    def test_serialize_when_missing_description_then_empty_value(self, make_event):
        lines = serialize_event(make_event(description=None, location=None))

        assert "DESCRIPTION:" in lines
        assert "LOCATION:" in lines

    def test_serialize_when_tentative_then_status_uppercase(self, make_event):
        lines = serialize_event(make_event(status=EventStatus.TENTATIVE))

        assert "STATUS:TENTATIVE" in lines

    def test_serialize_when_recurring_then_rrule_passed_through(self, make_event):
        lines = serialize_event(
            make_event(is_recurring=True, recurrence_rule="FREQ=WEEKLY;BYDAY=MO;COUNT=4")
        )

        assert lines[-2] == "RRULE:FREQ=WEEKLY;BYDAY=MO;COUNT=4"

    def test_serialize_when_rule_without_recurring_flag_then_omitted(self, make_event):
        lines = serialize_event(make_event(is_recurring=False, recurrence_rule="FREQ=DAILY"))

        assert not any(line.startswith("RRULE") for line in lines)

    def test_serialize_when_attendees_then_one_line_each_before_end(self, make_event):
        attendees = [
            Attendee(name="Anna", email="anna@example.com", role=AttendeeRole.ORGANIZER),
            Attendee(email="ben@example.com", status=AttendeeStatus.ACCEPTED),
        ]

        lines = serialize_event(make_event(attendees=attendees))

        assert lines[-3:] == [
            "ATTENDEE;CN=Anna;ROLE=ORGANIZER;PARTSTAT=PENDING:mailto:anna@example.com",
            "ATTENDEE;CN=ben@example.com;ROLE=ATTENDEE;PARTSTAT=ACCEPTED:mailto:ben@example.com",
            "END:VEVENT",
        ]

    def test_serialize_when_title_has_separators_then_escaped(self, make_event):
        lines = serialize_event(make_event(title="Shoot; bring props, lights\nand snacks"))

        assert "SUMMARY:Shoot\\; bring props\\, lights\\nand snacks" in lines

    def test_serialize_when_invalid_date_then_raises(self, make_event):
        event = make_event()
        event.start_time = "not-a-date"  # type: ignore[assignment]

        with pytest.raises(ICSDateError):
            serialize_event(event)


@pytest.mark.unit
class TestHelpers:
    """Tests for text and parameter escaping helpers."""

    def test_escape_text_when_none_then_empty(self):
        assert escape_text(None) == ""

    def test_escape_text_when_backslash_then_doubled(self):
        assert escape_text("Photos\\2025") == "Photos\\\\2025"

    def test_serialize_attendee_when_name_has_comma_then_quoted(self):
        attendee = Attendee(name="Doe, Jane", email="jane@example.com")

        assert serialize_attendee(attendee).startswith('ATTENDEE;CN="Doe, Jane";ROLE=')
