"""
Pydantic schemas for event polls and votes.

Poll shape rules (non-empty options, unique labels) are enforced by the
service layer so that every entry point reports them the same way; these
schemas only check types.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class PollOptionCreate(BaseModel):
    """
    Poll option as sent by clients.

    votes and voters are accepted for compatibility with clients that echo a
    full option back, but are always reset when the poll is stored.
    """

    label: str = Field(..., max_length=255)
    votes: Optional[int] = Field(default=None, description="Ignored; new options start at 0")
    voters: Optional[List[str]] = Field(default=None, description="Ignored; new options start empty")


class PollCreate(BaseModel):
    """Poll attached to an event on create or on its first update."""

    question: str = Field(..., max_length=500)
    options: List[PollOptionCreate] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "question": "Lunch?",
                "options": [{"label": "Pizza"}, {"label": "Sushi"}],
            }
        }
    }


class PollOptionResponse(BaseModel):
    """Option with its current tally."""

    label: str
    votes: int
    voters: List[str]


class PollResponse(BaseModel):
    """Poll as returned inside an event."""

    question: str
    options: List[PollOptionResponse]


class VoteRequest(BaseModel):
    """Body of POST /api/events/{guid}/votes."""

    option_label: str = Field(..., min_length=1, max_length=255)
    voter_id: str = Field(..., min_length=1, max_length=255)

    model_config = {
        "json_schema_extra": {
            "example": {"option_label": "Pizza", "voter_id": "usr_01hgw2bbg00000000000000001"}
        }
    }
