"""
Validation rules for events and their polls.

Plain functions, no database access. The only collaborator call is the
directory lookup in default_participants(), whose failure propagates.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from backend.src.services.collaborators import UserDirectory
from backend.src.services.exceptions import InvalidDateRangeError, InvalidPollError


def validate_date_range(start: datetime, end: Optional[datetime]) -> None:
    """
    Check that an event does not end before it starts.

    Args:
        start: Start timestamp
        end: End timestamp (None is accepted; callers default it first)

    Raises:
        InvalidDateRangeError: If end < start
    """
    if end is not None and end < start:
        raise InvalidDateRangeError(start, end)


def validate_poll_shape(poll: Mapping[str, Any]) -> None:
    """
    Check that a poll can be stored.

    A poll needs a question, at least one option, and labels that are
    non-blank and pairwise distinct.

    Raises:
        InvalidPollError: On the first rule the poll breaks
    """
    question = (poll.get("question") or "").strip()
    if not question:
        raise InvalidPollError("Poll question must not be empty")

    options = poll.get("options") or []
    if not options:
        raise InvalidPollError("Poll must have at least one option")

    seen = set()
    for option in options:
        label = (option.get("label") or "").strip()
        if not label:
            raise InvalidPollError("Poll option labels must not be empty")
        if label in seen:
            raise InvalidPollError(f"Duplicate poll option label '{label}'")
        seen.add(label)


def reset_poll_options(options: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Return the options with fresh vote state, whatever the caller sent."""
    return [
        {"label": option["label"].strip(), "votes": 0, "voters": []}
        for option in options
    ]


def default_participants(directory: UserDirectory) -> List[str]:
    """
    Participant list used when an event is created without any.

    Raises:
        DirectoryUnavailableError: If the directory cannot be read
    """
    return list(directory.list_active_users())


def dedupe_participants(participants: List[str]) -> List[str]:
    """Drop repeated references, keeping the first occurrence's position."""
    return list(dict.fromkeys(participants))
