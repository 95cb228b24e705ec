"""Unit tests for the SQLite event store."""

from datetime import datetime, timezone

import pytest

from studiocal.ics.models import Attendee, AttendeeRole, CreateEventData, EventStatus
from studiocal.storage import DuplicateEventError, EventDatabase


def _create_data(**overrides) -> CreateEventData:
    fields = {
        "title": "Family Portrait",
        "start_time": datetime(2025, 3, 1, 10, 30, tzinfo=timezone.utc),
        "end_time": datetime(2025, 3, 1, 11, 30, tzinfo=timezone.utc),
        "calendar_id": "cal-1",
    }
    fields.update(overrides)
    return CreateEventData(**fields)


@pytest.mark.unit
class TestEventDatabase:
    """Tests for EventDatabase CRUD operations."""

    @pytest.mark.asyncio
    async def test_create_event_generates_id_and_uid(self, event_db):
        event = await event_db.create_event(_create_data())

        assert event.id
        assert event.ical_uid.endswith("@test.studiocal.local")
        assert event.created_at == event.updated_at
        assert event.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_create_event_keeps_supplied_uid(self, event_db):
        event = await event_db.create_event(_create_data(ical_uid="abc@example.com"))

        assert event.ical_uid == "abc@example.com"

    @pytest.mark.asyncio
    async def test_create_event_when_uid_exists_then_duplicate_error(self, event_db):
        await event_db.create_event(_create_data(ical_uid="abc@example.com"))

        with pytest.raises(DuplicateEventError) as exc_info:
            await event_db.create_event(_create_data(ical_uid="abc@example.com"))

        assert exc_info.value.ical_uid == "abc@example.com"

    @pytest.mark.asyncio
    async def test_list_events_round_trips_all_fields(self, event_db):
        created = await event_db.create_event(
            _create_data(
                description="Outdoor, weather permitting",
                location="Schönbrunn Park",
                status=EventStatus.TENTATIVE,
                is_recurring=True,
                recurrence_rule="FREQ=WEEKLY;COUNT=3",
                created_by="user-1",
                attendees=[
                    Attendee(name="Anna", email="anna@example.com", role=AttendeeRole.ORGANIZER)
                ],
            )
        )

        [stored] = await event_db.list_events()

        assert stored == created
        assert stored.status == "tentative"
        assert stored.attendees[0].email == "anna@example.com"
        assert stored.start_time == datetime(2025, 3, 1, 10, 30, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_list_events_orders_by_start(self, event_db):
        await event_db.create_event(
            _create_data(
                title="Later",
                start_time=datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc),
                end_time=datetime(2025, 3, 2, 10, 0, tzinfo=timezone.utc),
            )
        )
        await event_db.create_event(_create_data(title="Earlier"))

        events = await event_db.list_events()

        assert [e.title for e in events] == ["Earlier", "Later"]

    @pytest.mark.asyncio
    async def test_list_events_filters_by_calendar_and_creator(self, event_db):
        await event_db.create_event(_create_data(title="A", calendar_id="cal-1", created_by="u1"))
        await event_db.create_event(_create_data(title="B", calendar_id="cal-2", created_by="u1"))
        await event_db.create_event(_create_data(title="C", calendar_id="cal-1", created_by="u2"))

        assert [e.title for e in await event_db.list_events(calendar_id="cal-1")] == ["A", "C"]
        assert [e.title for e in await event_db.list_events(created_by="u1")] == ["A", "B"]
        assert [
            e.title for e in await event_db.list_events(calendar_id="cal-1", created_by="u2")
        ] == ["C"]

    @pytest.mark.asyncio
    async def test_list_events_filters_by_time_range(self, event_db):
        await event_db.create_event(_create_data(title="March 1"))
        await event_db.create_event(
            _create_data(
                title="March 5",
                start_time=datetime(2025, 3, 5, 10, 0, tzinfo=timezone.utc),
                end_time=datetime(2025, 3, 5, 11, 0, tzinfo=timezone.utc),
            )
        )

        events = await event_db.list_events(
            start=datetime(2025, 3, 2, tzinfo=timezone.utc),
            end=datetime(2025, 3, 6, tzinfo=timezone.utc),
        )

        assert [e.title for e in events] == ["March 5"]

    @pytest.mark.asyncio
    async def test_event_without_attendees_reads_back_equal_to_created(self, event_db):
        created = await event_db.create_event(_create_data())

        [stored] = await event_db.list_events()

        assert stored.attendees == []
        assert stored == created

    @pytest.mark.asyncio
    async def test_find_event_by_ical_uid(self, event_db):
        created = await event_db.create_event(_create_data(ical_uid="abc@example.com"))

        assert await event_db.find_event_by_ical_uid("abc@example.com") == created
        assert await event_db.find_event_by_ical_uid("missing@example.com") is None

    @pytest.mark.asyncio
    async def test_database_file_created_in_nested_directory(self, tmp_path):
        db = EventDatabase(tmp_path / "nested" / "dir" / "events.db")

        assert await db.list_events() == []
        assert (tmp_path / "nested" / "dir" / "events.db").exists()
