"""
Notification model for the notification history.

A notification is written once each time an event is created, updated or
deleted. Records are never mutated afterwards; push delivery, if any, is a
separate concern that reads from this table.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class NotificationType(str, enum.Enum):
    """Notification type tag."""
    EVENT = "event"
    VACATION = "vacation"
    SYSTEM = "system"


class Notification(Base, GuidMixin):
    """
    Notification record.

    Attributes:
        title: Short notification title (max 200 chars)
        body: Notification body text (max 500 chars)
        type: Notification type tag (see NotificationType)
        subject_id: GUID of the entity the notification is about
        created_at: Timestamp supplied by the caller (when the change happened)
    """

    __tablename__ = "notifications"
    GUID_PREFIX = "ntf"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(200), nullable=False)
    body = Column(String(500), nullable=False)
    type = Column(String(30), nullable=False)
    subject_id = Column(String(64), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, title='{self.title}')>"
