"""SQLite-backed event store."""

import asyncio
import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

import aiosqlite

from ..ics.datetime_utils import to_iso_utc
from ..ics.models import Attendee, CalendarEvent, CreateEventData
from .exceptions import DuplicateEventError, StorageError

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = (
    "id, ical_uid, calendar_id, title, description, location, start_time, end_time, "
    "all_day, timezone, status, is_recurring, recurrence_rule, attendees, created_by, "
    "created_at, updated_at"
)


class EventDatabase:
    """Manages SQLite persistence of calendar events.

    Timestamps are stored as ``YYYY-MM-DDTHH:MM:SSZ`` strings so that
    lexical ordering matches chronological ordering.
    """

    def __init__(self, database_path: Union[Path, str], uid_domain: str = "studiocal.local"):
        """Initialize event database.

        Args:
            database_path: Path to SQLite database file
            uid_domain: Domain suffix for generated iCal UIDs
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.uid_domain = uid_domain
        self._initialized = False
        self._initialization_lock: Optional[asyncio.Lock] = None

        logger.info(f"Event database initialized (lazy): {database_path}")

    async def _ensure_initialized(self) -> None:
        """Create the schema on first use."""
        if self._initialized:
            return

        if self._initialization_lock is None:
            self._initialization_lock = asyncio.Lock()

        async with self._initialization_lock:
            if self._initialized:
                return

            try:
                async with aiosqlite.connect(str(self.database_path)) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS calendar_events (
                            id TEXT PRIMARY KEY,
                            ical_uid TEXT NOT NULL UNIQUE,
                            calendar_id TEXT NOT NULL,
                            title TEXT NOT NULL,
                            description TEXT,
                            location TEXT,
                            start_time TEXT NOT NULL,
                            end_time TEXT NOT NULL,
                            all_day INTEGER NOT NULL DEFAULT 0,
                            timezone TEXT NOT NULL DEFAULT 'UTC',
                            status TEXT NOT NULL DEFAULT 'confirmed',
                            is_recurring INTEGER NOT NULL DEFAULT 0,
                            recurrence_rule TEXT,
                            attendees TEXT NOT NULL DEFAULT '[]',
                            created_by TEXT,
                            created_at TEXT NOT NULL,
                            updated_at TEXT NOT NULL
                        )
                    """
                    )
                    await db.execute(
                        """
                        CREATE INDEX IF NOT EXISTS idx_events_calendar_start
                        ON calendar_events(calendar_id, start_time)
                    """
                    )
                    await db.commit()
            except sqlite3.Error as e:
                logger.exception("Failed to initialize event database")
                raise StorageError(f"Database initialization failed: {e}") from e

            self._initialized = True
            logger.debug(f"Event database schema ready at {self.database_path}")

    def _generate_uid(self) -> str:
        return f"{uuid.uuid4()}@{self.uid_domain}"

    async def create_event(self, data: CreateEventData) -> CalendarEvent:
        """Insert a new event.

        Raises:
            DuplicateEventError: If ``data.ical_uid`` is already stored
            StorageError: On any other database failure
        """
        await self._ensure_initialized()

        now = datetime.now(timezone.utc).replace(microsecond=0)
        event = CalendarEvent(
            id=str(uuid.uuid4()),
            ical_uid=data.ical_uid or self._generate_uid(),
            calendar_id=data.calendar_id,
            title=data.title,
            description=data.description,
            location=data.location,
            start_time=data.start_time,
            end_time=data.end_time,
            all_day=data.all_day,
            timezone=data.timezone,
            status=data.status,
            is_recurring=data.is_recurring,
            recurrence_rule=data.recurrence_rule,
            attendees=data.attendees,
            created_by=data.created_by,
            created_at=now,
            updated_at=now,
        )

        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                await db.execute(
                    f"INSERT INTO calendar_events ({_EVENT_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    self._to_row(event),
                )
                await db.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateEventError(event.ical_uid) from e
        except sqlite3.Error as e:
            logger.exception("Failed to store event")
            raise StorageError(f"Failed to store event: {e}") from e

        logger.debug(f"Stored event {event.id} ({event.title})")
        return event

    async def list_events(
        self,
        calendar_id: Optional[str] = None,
        created_by: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Return events ordered by start time.

        Args:
            calendar_id: Only events in this calendar
            created_by: Only events created by this user
            start: Only events starting at or after this time
            end: Only events ending at or before this time
        """
        await self._ensure_initialized()

        conditions = []
        params: List[Any] = []
        if calendar_id:
            conditions.append("calendar_id = ?")
            params.append(calendar_id)
        if created_by:
            conditions.append("created_by = ?")
            params.append(created_by)
        if start:
            conditions.append("start_time >= ?")
            params.append(to_iso_utc(start))
        if end:
            conditions.append("end_time <= ?")
            params.append(to_iso_utc(end))

        query = f"SELECT {_EVENT_COLUMNS} FROM calendar_events"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY start_time"

        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
        except sqlite3.Error as e:
            logger.exception("Failed to list events")
            raise StorageError(f"Failed to list events: {e}") from e

        return [self._from_row(row) for row in rows]

    async def find_event_by_ical_uid(self, ical_uid: str) -> Optional[CalendarEvent]:
        """Return the event with the given iCal UID, if any."""
        await self._ensure_initialized()

        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(
                    f"SELECT {_EVENT_COLUMNS} FROM calendar_events WHERE ical_uid = ?",
                    (ical_uid,),
                ) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as e:
            logger.exception("Failed to look up event by UID")
            raise StorageError(f"Failed to look up event: {e}") from e

        return self._from_row(row) if row else None

    @staticmethod
    def _to_row(event: CalendarEvent) -> tuple:
        attendees = [attendee.model_dump() for attendee in event.attendees or []]
        return (
            event.id,
            event.ical_uid,
            event.calendar_id,
            event.title,
            event.description,
            event.location,
            to_iso_utc(event.start_time),
            to_iso_utc(event.end_time),
            int(event.all_day),
            event.timezone,
            event.status,
            int(event.is_recurring),
            event.recurrence_rule,
            json.dumps(attendees),
            event.created_by,
            to_iso_utc(event.created_at),
            to_iso_utc(event.updated_at),
        )

    @staticmethod
    def _from_row(row: Any) -> CalendarEvent:
        attendees = [Attendee(**item) for item in json.loads(row["attendees"] or "[]")]
        return CalendarEvent(
            id=row["id"],
            ical_uid=row["ical_uid"],
            calendar_id=row["calendar_id"],
            title=row["title"],
            description=row["description"],
            location=row["location"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            all_day=bool(row["all_day"]),
            timezone=row["timezone"],
            status=row["status"],
            is_recurring=bool(row["is_recurring"]),
            recurrence_rule=row["recurrence_rule"],
            attendees=attendees,
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
