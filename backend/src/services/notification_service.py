"""
Notification service for recording notification history.

Provides business logic for:
- Creating notification records when events change
- Listing notifications about a given subject

Push delivery is out of scope here: delivery workers read the notifications
table and dispatch on their own schedule.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models.notification import Notification
from backend.src.services.collaborators import Notifier
from backend.src.services.exceptions import NotificationFailedError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class NotificationService(Notifier):
    """
    Service for notification creation and lookup.

    Usage:
        >>> service = NotificationService(db_session)
        >>> service.notify("Event Created", "Event Standup has been created",
        ...                "event", "evt_01h...", datetime.utcnow())
    """

    def __init__(self, db: Session):
        """
        Initialize notification service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

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

        Args:
            title: Notification title (truncated to 200 chars)
            body: Notification body (truncated to 500 chars)
            type: Notification type tag (see NotificationType)
            subject_id: GUID of the entity the notification is about
            timestamp: When the change happened

        Raises:
            NotificationFailedError: If the record could not be written
        """
        notification = Notification(
            title=title[:200],
            body=body[:500],
            type=type,
            subject_id=subject_id,
            created_at=timestamp,
        )
        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Failed to record notification",
                extra={"title": title, "subject_id": subject_id, "error": str(e)},
            )
            raise NotificationFailedError(
                f"Could not record notification '{title}'"
            ) from e

        logger.info(
            "Created notification",
            extra={
                "guid": notification.guid,
                "type": notification.type,
                "subject_id": subject_id,
            },
        )

    def list_for_subject(
        self,
        subject_id: str,
        type: Optional[str] = None,
    ) -> List[Notification]:
        """
        List notifications about one entity, oldest first.

        Args:
            subject_id: Entity GUID
            type: Optional type filter
        """
        query = self.db.query(Notification).filter(Notification.subject_id == subject_id)
        if type is not None:
            query = query.filter(Notification.type == type)
        return query.order_by(Notification.created_at.asc(), Notification.id.asc()).all()
