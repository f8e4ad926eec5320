"""
Collaborator interfaces consumed by the events module.

EventService and VoteService only talk to storage, notification, mail and the
user directory through these interfaces. Concrete implementations are passed
in by the caller (see api/events.py), which keeps the services free of
process-wide singletons and lets tests substitute recording fakes.

Design Pattern: Strategy pattern for pluggable collaborators
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class PhotoFile:
    """
    A file received from a client, ready for upload.

    Attributes:
        filename: Original filename as sent by the client
        content: Raw file bytes
        content_type: MIME type (if the client supplied one)
    """
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        """Extension with dot, lowercase (e.g., '.jpg')."""
        parts = self.filename.rsplit('.', 1)
        return f".{parts[-1].lower()}" if len(parts) > 1 else ""


class PhotoUploader(ABC):
    """Stores uploaded photos and hands back a reference (URL or path)."""

    @abstractmethod
    def upload(self, file: PhotoFile, category: str) -> str:
        """
        Store a file.

        Raises:
            UploadFailedError: If the file could not be stored
        """
        ...

    @abstractmethod
    def delete(self, stored_ref: str) -> None:
        """Remove a previously stored file (used to undo partial uploads)."""
        ...


class Notifier(ABC):
    """Durably records a notification."""

    @abstractmethod
    def notify(
        self,
        title: str,
        body: str,
        type: str,
        subject_id: str,
        timestamp: datetime,
    ) -> None:
        """
        Record a notification.

        Raises:
            NotificationFailedError: If the notification could not be recorded
        """
        ...


class Mailer(ABC):
    """Accepts a structured mail-send request."""

    @abstractmethod
    def send(
        self,
        recipients: List[str],
        subject: str,
        template: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Send (or queue) a mail.

        Raises:
            MailFailedError: If the mail could not be accepted
        """
        ...


class UserDirectory(ABC):
    """Lists the users that take part in events by default."""

    @abstractmethod
    def list_active_users(self) -> List[str]:
        """
        Return references of all active users, in a stable order.

        Raises:
            DirectoryUnavailableError: If the directory cannot be read
        """
        ...
