"""Data models for iCal import and export."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class EventStatus(str, Enum):
    """Event status values."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class AttendeeRole(str, Enum):
    """Attendee role enum."""

    ORGANIZER = "organizer"
    ATTENDEE = "attendee"
    OPTIONAL = "optional"


class AttendeeStatus(str, Enum):
    """Attendee participation status enum."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    TENTATIVE = "tentative"


class Attendee(BaseModel):
    """Calendar event attendee."""

    name: Optional[str] = Field(default=None, description="Attendee display name")
    email: str = Field(..., description="Attendee email address")
    role: AttendeeRole = Field(default=AttendeeRole.ATTENDEE, description="Attendee role")
    status: AttendeeStatus = Field(
        default=AttendeeStatus.PENDING, description="Participation status"
    )

    model_config = ConfigDict(use_enum_values=True)


class CreateEventData(BaseModel):
    """Payload accepted by an event store when creating an event."""

    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    calendar_id: str
    all_day: bool = False
    timezone: str = "UTC"
    status: EventStatus = EventStatus.CONFIRMED
    is_recurring: bool = False
    recurrence_rule: Optional[str] = None
    ical_uid: Optional[str] = None
    created_by: Optional[str] = None
    attendees: List[Attendee] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)


class CalendarEventDraft(BaseModel):
    """Transient event record produced by parsing iCal text."""

    title: str = Field(..., min_length=1, description="Event title (SUMMARY)")
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: str = Field(..., min_length=1, description="ISO-8601 UTC start")
    end_time: str = Field(..., min_length=1, description="ISO-8601 UTC end")

    uid: Optional[str] = Field(default=None, description="Source UID, if present")
    all_day: bool = Field(default=False, description="DTSTART was a bare date")

    def to_create_data(self, calendar_id: str) -> CreateEventData:
        """Merge the target calendar into a store create payload."""
        return CreateEventData(
            title=self.title,
            description=self.description,
            location=self.location,
            start_time=self.start_time,
            end_time=self.end_time,
            calendar_id=calendar_id,
            all_day=self.all_day,
            ical_uid=self.uid,
        )


class CalendarEvent(BaseModel):
    """Persisted calendar event."""

    id: str = Field(..., description="Event ID")
    ical_uid: str = Field(..., description="Globally unique iCal UID")
    calendar_id: Optional[str] = Field(default=None, description="Owning calendar")
    title: str = Field(..., description="Event title")
    description: Optional[str] = None
    location: Optional[str] = None

    start_time: datetime = Field(..., description="Event start time")
    end_time: datetime = Field(..., description="Event end time")
    all_day: bool = False
    timezone: str = "UTC"

    status: EventStatus = Field(default=EventStatus.CONFIRMED, description="Event status")

    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None

    is_recurring: bool = False
    recurrence_rule: Optional[str] = Field(
        default=None, description="Raw RRULE value body, e.g. FREQ=WEEKLY"
    )
    attendees: Optional[List[Attendee]] = None

    model_config = ConfigDict(use_enum_values=True)

    @field_serializer("start_time", "end_time", "created_at", "updated_at")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class ImportOptions(BaseModel):
    """Optional behaviour for an import run."""

    dry_run: bool = False
    skip_duplicates: bool = False
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    include_past: bool = True


class ImportResult(BaseModel):
    """Summary of an import run."""

    imported: int = 0
    errors: List[str] = Field(default_factory=list)
    skipped: int = 0
    dry_run: bool = False
    drafts: List[CalendarEventDraft] = Field(default_factory=list)

    @property
    def warning_count(self) -> int:
        """Number of per-event failures."""
        return len(self.errors)

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)


class ICSResponse(BaseModel):
    """Response from ICS fetch operation."""

    success: bool
    content: Optional[str] = None
    status_code: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    error_message: Optional[str] = None
    fetch_time: datetime = Field(default_factory=datetime.now)

    @property
    def content_length(self) -> Optional[int]:
        """Get content length if available."""
        if self.content:
            return len(self.content.encode("utf-8"))
        return None
