"""
Poll models embedded in an Event.

A poll belongs to exactly one event and is removed with it. Vote state is
split in two:
- poll_options.votes: the counter shown to clients
- poll_votes: one row per voter, unique per poll, so a voter can appear in
  at most one option's voters set

VoteService writes both in the same transaction; the counter is incremented
with a server-side expression, never read-modify-written in Python.
"""

from datetime import datetime
from typing import List

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base


class Poll(Base):
    """
    Poll attached to an event.

    Attributes:
        event_id: Owning event (unique: one poll per event)
        question: Poll question
        options: Ordered options (by position)
    """

    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    question = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="poll")
    options = relationship(
        "PollOption",
        back_populates="poll",
        order_by="PollOption.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def find_option(self, label: str):
        """Return the option with this exact label, or None."""
        for option in self.options:
            if option.label == label:
                return option
        return None

    def __repr__(self) -> str:
        return f"<Poll(id={self.id}, event_id={self.event_id}, options={len(self.options)})>"


class PollOption(Base):
    """
    One answer of a poll.

    Attributes:
        label: Option label (unique within the poll)
        position: Display order, as supplied at poll creation
        votes: Vote counter (never negative)
        voters: User references that picked this option (from poll_votes)
    """

    __tablename__ = "poll_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(
        Integer,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    votes = Column(Integer, nullable=False, default=0)

    poll = relationship("Poll", back_populates="options")
    ballots = relationship(
        "PollVote",
        back_populates="option",
        order_by="PollVote.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "label", name="uq_poll_options_poll_label"),
        CheckConstraint("votes >= 0", name="ck_poll_options_votes_non_negative"),
    )

    @property
    def voters(self) -> List[str]:
        """Voter references in vote order."""
        return [ballot.voter_id for ballot in self.ballots]

    def __repr__(self) -> str:
        return f"<PollOption(label='{self.label}', votes={self.votes})>"


class PollVote(Base):
    """
    A single voter's ballot in a poll.

    The (poll_id, voter_id) unique constraint is what makes a second vote by
    the same voter fail, whichever option it targets.
    """

    __tablename__ = "poll_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(
        Integer,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
    )
    option_id = Column(
        Integer,
        ForeignKey("poll_options.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voter_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    option = relationship("PollOption", back_populates="ballots")

    __table_args__ = (
        UniqueConstraint("poll_id", "voter_id", name="uq_poll_votes_poll_voter"),
    )
