"""
User model as seen by the events module.

Account management lives elsewhere; the events module only reads this table
to compute the default participant list (every active user).

Design Rationale:
- Email is globally unique
- is_active is the functional toggle; inactive users are never invited
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class User(Base, GuidMixin):
    """
    User directory entry.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (usr_xxx), used as the participant reference
        email: Login email (unique)
        display_name: Name shown in participant lists
        is_active: Whether the user takes part in events
    """

    __tablename__ = "users"
    GUID_PREFIX = "usr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', active={self.is_active})>"
