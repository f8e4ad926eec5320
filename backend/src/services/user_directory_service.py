"""
User directory backed by the users table.

Supplies the default participant list for new events: the GUIDs of all
active users, oldest account first.
"""

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models.user import User
from backend.src.services.collaborators import UserDirectory
from backend.src.services.exceptions import DirectoryUnavailableError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class UserDirectoryService(UserDirectory):
    """Read-only view of active users."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_users(self) -> List[str]:
        """
        Return GUIDs of every active user.

        Raises:
            DirectoryUnavailableError: If the users table cannot be read
        """
        try:
            users = (
                self.db.query(User)
                .filter(User.is_active.is_(True))
                .order_by(User.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("User directory lookup failed", extra={"error": str(e)})
            raise DirectoryUnavailableError("User directory is unavailable") from e

        return [user.guid for user in users]
