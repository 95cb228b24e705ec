"""Shared fixtures for StudioCal tests."""

import itertools
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from studiocal.config.settings import StudioCalSettings, reset_settings
from studiocal.ics.models import CalendarEvent, CreateEventData, EventStatus
from studiocal.storage import EventDatabase


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host STUDIOCAL_* variables and config files out of the tests."""
    for key in list(os.environ):
        if key.startswith("STUDIOCAL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()


@pytest.fixture
def test_settings(tmp_path: Path) -> StudioCalSettings:
    """Settings rooted in a temporary directory with fast network timeouts."""
    return StudioCalSettings(
        config_dir=tmp_path / "config",
        data_dir=tmp_path / "data",
        uid_domain="test.studiocal.local",
        max_retries=0,
        retry_backoff_factor=0.0,
        request_timeout=5,
        calendar_name="Test Sessions",
    )


@pytest.fixture
def event_db(tmp_path: Path) -> EventDatabase:
    """Empty SQLite event store in a temporary directory."""
    return EventDatabase(tmp_path / "events.db", uid_domain="test.studiocal.local")


@pytest.fixture
def mock_store() -> AsyncMock:
    """Event store double whose create_event echoes a persisted event."""
    store = AsyncMock()
    ids = itertools.count(1)

    async def _create(data: CreateEventData) -> CalendarEvent:
        event_id = f"id-{next(ids)}"
        return CalendarEvent(
            id=event_id,
            ical_uid=data.ical_uid or f"{event_id}@test",
            calendar_id=data.calendar_id,
            title=data.title,
            start_time=data.start_time,
            end_time=data.end_time,
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

    store.create_event.side_effect = _create
    store.list_events.return_value = []
    store.find_event_by_ical_uid.return_value = None
    return store


@pytest.fixture
def make_event() -> Callable[..., CalendarEvent]:
    """Factory for persisted events with sensible defaults."""

    def _make(**overrides: Any) -> CalendarEvent:
        fields: dict = {
            "id": "evt-1",
            "ical_uid": "evt-1@newagefotografie.com",
            "calendar_id": "cal-1",
            "title": "Family Portrait",
            "description": "Outdoor session",
            "location": "Schönbrunn Park",
            "start_time": datetime(2025, 3, 1, 10, 30, tzinfo=timezone.utc),
            "end_time": datetime(2025, 3, 1, 11, 30, tzinfo=timezone.utc),
            "status": EventStatus.CONFIRMED,
            "created_at": datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 2, 2, 9, 0, tzinfo=timezone.utc),
            "created_by": "user-1",
        }
        fields.update(overrides)
        return CalendarEvent(**fields)

    return _make
