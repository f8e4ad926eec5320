"""
Event model for team events.

Events are the aggregate root of the events module: the record itself, its
photo references and its embedded poll are written together and only through
EventService / VoteService.

Design Rationale:
- Soft delete via is_deleted keeps history; deleted_at records when
- Participants and photos are ordered lists of opaque references (JSON)
- end_date is always populated (defaults to start_date on create)
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, Index
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class Event(Base, GuidMixin):
    """
    Team event model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)
        title: Event title
        description: Free-form description (used as mail context)
        type: Event type tag (e.g. meeting, party, training)
        start_date: Start timestamp
        end_date: End timestamp (>= start_date)
        participants: Ordered list of user references
        photo: Ordered list of stored photo references
        is_deleted: Soft delete flag
        deleted_at: Soft delete timestamp
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Relationships:
        poll: Embedded poll (one-to-one, deleted with the event)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False)

    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)

    participants = Column(JSON, nullable=False, default=list)
    photo = Column(JSON, nullable=False, default=list)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    poll = relationship(
        "Poll",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index(
            "idx_events_not_deleted",
            "is_deleted",
            "id",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"title='{self.title}', "
            f"start={self.start_date}, "
            f"deleted={self.is_deleted}"
            f")>"
        )

    def __str__(self) -> str:
        return f"{self.title} - {self.start_date}"
