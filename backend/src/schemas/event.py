"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation requests (sent as the `payload` part of a multipart form)
- Event update requests (partial, same transport)
- Event API responses (list and detail)

Design:
- GUIDs are exposed via guid property, never internal IDs
- Photos travel as separate multipart files, never inside the payload
- Timestamps are naive UTC and serialized with an explicit "Z"
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.schemas.poll import PollCreate, PollResponse


# ============================================================================
# Request Schemas
# ============================================================================


def _to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Convert timezone-aware datetimes to naive UTC, as stored."""
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class EventCreate(BaseModel):
    """
    Schema for creating a new event.

    Required:
        title: Event title
        type: Event type tag (e.g. meeting, party)
        start_date: Start timestamp

    Optional:
        description: Event description (sent to participants by mail)
        end_date: End timestamp (defaults to start_date)
        participants: User references (empty means every active user)
        poll: Poll to attach; any votes/voters sent are discarded
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    type: str = Field(..., min_length=1, max_length=50)
    start_date: datetime = Field(..., description="Start timestamp")
    end_date: Optional[datetime] = Field(default=None, description="End timestamp")
    participants: List[str] = Field(default_factory=list)
    poll: Optional[PollCreate] = Field(default=None)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)

    @field_validator("title", "type")
    @classmethod
    def validate_not_whitespace(cls, v: str) -> str:
        """Ensure value is not just whitespace."""
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Standup",
                "type": "meeting",
                "start_date": "2026-03-02T09:00:00",
                "participants": [],
                "poll": {
                    "question": "Format?",
                    "options": [{"label": "Remote"}, {"label": "Office"}],
                },
            }
        }
    }


class EventUpdate(BaseModel):
    """
    Schema for updating an event.

    All fields are optional - only provided fields will be updated. A poll
    can only be added to an event that does not have one yet.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    participants: Optional[List[str]] = Field(default=None)
    poll: Optional[PollCreate] = Field(default=None)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)

    @field_validator("title", "type")
    @classmethod
    def validate_not_whitespace(cls, v: Optional[str]) -> Optional[str]:
        """Ensure value is not just whitespace."""
        if v is not None and not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip() if v is not None else v


# ============================================================================
# Response Schemas
# ============================================================================


class EventResponse(BaseModel):
    """Event as returned by every endpoint."""

    guid: str = Field(..., description="Event GUID (evt_xxx)")
    title: str
    description: Optional[str] = None
    type: str
    start_date: datetime
    end_date: datetime
    participants: List[str]
    photo: List[str]
    poll: Optional[PollResponse] = None
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime

    @field_serializer("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None


class EventListResponse(BaseModel):
    """List of events."""

    items: List[EventResponse]
    total: int
