"""
Service layer for business logic.

Only the exceptions and GuidService are exported here: the models import
GuidService, so service modules that import models are imported directly
(e.g. `from backend.src.services.event_service import EventService`).
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    InvalidDateRangeError,
    InvalidPollError,
    UnknownOptionError,
    ConflictError,
    AlreadyVotedError,
    PersistenceConflictError,
    UploadFailedError,
    NotificationFailedError,
    MailFailedError,
    DirectoryUnavailableError,
)
from backend.src.services.guid import GuidService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "InvalidDateRangeError",
    "InvalidPollError",
    "UnknownOptionError",
    "ConflictError",
    "AlreadyVotedError",
    "PersistenceConflictError",
    "UploadFailedError",
    "NotificationFailedError",
    "MailFailedError",
    "DirectoryUnavailableError",
    "GuidService",
]
