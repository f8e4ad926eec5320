"""
SQLAlchemy models for the Crewboard backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.event import Event
from backend.src.models.poll import Poll, PollOption, PollVote
from backend.src.models.notification import Notification, NotificationType
from backend.src.models.mail_message import MailMessage
from backend.src.models.user import User

__all__ = [
    "Base",
    "Event",
    "Poll",
    "PollOption",
    "PollVote",
    "Notification",
    "NotificationType",
    "MailMessage",
    "User",
]
