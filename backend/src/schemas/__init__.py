"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.poll import (
    PollOptionCreate,
    PollCreate,
    PollOptionResponse,
    PollResponse,
    VoteRequest,
)
from backend.src.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
)

__all__ = [
    "PollOptionCreate",
    "PollCreate",
    "PollOptionResponse",
    "PollResponse",
    "VoteRequest",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventListResponse",
]
