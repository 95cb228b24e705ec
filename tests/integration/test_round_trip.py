"""End-to-end tests: export, parse and import against the SQLite store and HTTP app."""

from datetime import datetime, timedelta, timezone

import pytest
from aiohttp.test_utils import TestClient, TestServer

from studiocal.ics.models import CreateEventData, ImportOptions
from studiocal.ics.parser import parse_ical
from studiocal.ics.serializer import export_to_ical
from studiocal.ics.service import CalendarInterchange
from studiocal.web.server import create_app
from tests.fixtures.mock_ics_data import ICSDataFactory


@pytest.fixture
def interchange(event_db, test_settings):
    return CalendarInterchange(event_db, test_settings)


@pytest.mark.integration
class TestRoundTrip:
    """Serialize then parse."""

    def test_single_event_round_trip_recovers_title_and_times(self, make_event):
        event = make_event(
            start_time=datetime(2025, 3, 1, 10, 30, 45, 123000, tzinfo=timezone.utc),
            end_time=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
        )

        [draft] = parse_ical(export_to_ical([event]))

        assert draft.title == event.title
        assert draft.uid == event.ical_uid
        start = datetime.fromisoformat(draft.start_time.replace("Z", "+00:00"))
        end = datetime.fromisoformat(draft.end_time.replace("Z", "+00:00"))
        assert abs(start - event.start_time) < timedelta(seconds=1)
        assert end == event.end_time

    def test_escaped_text_survives_round_trip(self, make_event):
        event = make_event(
            title="Shoot; props, lights",
            description="Line one\nLine two, with comma",
            location="Studio A; Room 2",
        )

        [draft] = parse_ical(export_to_ical([event]))

        assert draft.title == "Shoot; props, lights"
        assert draft.description == "Line one\nLine two, with comma"
        assert draft.location == "Studio A; Room 2"


@pytest.mark.integration
class TestImportIntoDatabase:
    """Import through the service into SQLite."""

    @pytest.mark.asyncio
    async def test_complete_and_incomplete_blocks_import_one(self, interchange, event_db):
        result = await interchange.import_from_ical(ICSDataFactory.create_partial_ics(), "cal-1")

        assert result.imported == 1
        assert result.errors == []
        [stored] = await event_db.list_events(calendar_id="cal-1")
        assert stored.title == "Complete Session"
        assert stored.ical_uid == "test-event-1@example.com"

    @pytest.mark.asyncio
    async def test_tzid_event_stored_in_utc(self, interchange, event_db):
        await interchange.import_from_ical(ICSDataFactory.create_timezone_event_ics(), "cal-1")

        [stored] = await event_db.list_events()
        assert stored.start_time == datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_reimport_without_skip_reports_duplicates(self, interchange):
        content = ICSDataFactory.create_basic_ics(2)
        await interchange.import_from_ical(content, "cal-1")

        result = await interchange.import_from_ical(content, "cal-1")

        assert result.imported == 0
        assert result.warning_count == 2

    @pytest.mark.asyncio
    async def test_reimport_with_skip_duplicates_skips(self, interchange, event_db):
        content = ICSDataFactory.create_basic_ics(2)
        await interchange.import_from_ical(content, "cal-1")

        result = await interchange.import_from_ical(
            content, "cal-1", ImportOptions(skip_duplicates=True)
        )

        assert result.skipped == 2
        assert result.errors == []
        assert len(await event_db.list_events()) == 2

    @pytest.mark.asyncio
    async def test_dry_run_creates_nothing(self, interchange, event_db):
        result = await interchange.import_from_ical(
            ICSDataFactory.create_basic_ics(3), "cal-1", ImportOptions(dry_run=True)
        )

        assert result.imported == 3
        assert await event_db.list_events() == []

    @pytest.mark.asyncio
    async def test_export_then_import_into_other_calendar(self, interchange, event_db):
        await event_db.create_event(
            CreateEventData(
                title="Wedding, Vienna",
                start_time=datetime(2025, 6, 1, 14, 0, tzinfo=timezone.utc),
                end_time=datetime(2025, 6, 1, 22, 0, tzinfo=timezone.utc),
                calendar_id="cal-1",
                created_by="user-1",
            )
        )

        exported = await interchange.export_to_ical(calendar_id="cal-1")
        result = await interchange.import_from_ical(
            exported, "cal-2", ImportOptions(dry_run=True)
        )

        assert result.imported == 1
        assert result.drafts[0].title == "Wedding, Vienna"
        assert result.drafts[0].start_time == "2025-06-01T14:00:00Z"


@pytest.mark.integration
class TestHTTPInterchange:
    """Feed and import endpoints backed by SQLite."""

    @pytest.fixture
    async def client(self, interchange, test_settings):
        async with TestClient(TestServer(create_app(interchange, test_settings))) as client:
            yield client

    @pytest.mark.asyncio
    async def test_import_then_feed(self, client):
        response = await client.post(
            "/calendar/import",
            json={"calendar_id": "cal-1", "ics_content": ICSDataFactory.create_basic_ics(2)},
        )
        assert response.status == 200
        assert (await response.json())["imported"] == 2

        feed = await client.get("/calendar.ics", params={"calendar_id": "cal-1"})

        assert feed.headers["Content-Type"] == "text/calendar; charset=utf-8"
        body = await feed.text()
        assert body.count("BEGIN:VEVENT") == 2
        assert "UID:test-event-1@example.com" in body
