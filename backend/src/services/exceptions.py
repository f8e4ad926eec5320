"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.

Validation errors are raised before anything is written. Failures of the
store or of a collaborator (photo upload, notification, mail, user
directory) all derive from PersistenceConflictError so callers can report
them with a single status while logs keep the precise kind.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class InvalidDateRangeError(ValidationError):
    """Raised when an end date precedes its start date."""

    def __init__(self, start: Any, end: Any):
        self.start = start
        self.end = end
        super().__init__(
            f"End date {end} is before start date {start}",
            field="end_date",
        )


class InvalidPollError(ValidationError):
    """Raised when a poll has no options, duplicate labels or blank text."""

    def __init__(self, message: str):
        super().__init__(message, field="poll")


class UnknownOptionError(ValidationError):
    """Raised when a vote targets a label the poll does not have."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Poll has no option '{label}'", field="option_label")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AlreadyVotedError(ConflictError):
    """Raised when a voter already has a vote in the poll."""

    def __init__(self, event_guid: str, voter_id: str):
        self.event_guid = event_guid
        self.voter_id = voter_id
        super().__init__(f"Voter {voter_id} already voted on event {event_guid}")


class PersistenceConflictError(ConflictError):
    """
    Raised when an operation could not be carried through.

    Covers store rejections and collaborator failures. event_guid is set
    when the event had already been committed before the failure (a side
    effect failed after the write), so the caller can find it.
    """

    def __init__(self, message: str, event_guid: Optional[str] = None):
        self.event_guid = event_guid
        super().__init__(message)


class UploadFailedError(PersistenceConflictError):
    """Raised when a photo could not be stored."""
    pass


class NotificationFailedError(PersistenceConflictError):
    """Raised when a notification could not be recorded."""
    pass


class MailFailedError(PersistenceConflictError):
    """Raised when a mail could not be queued."""
    pass


class DirectoryUnavailableError(PersistenceConflictError):
    """Raised when the user directory cannot be read."""
    pass
