"""
Vote recording for event polls.

A vote is one PollVote row plus a counter increment on the chosen option,
written in a single transaction:

- The (poll_id, voter_id) unique constraint rejects a second vote by the
  same voter, even when two requests race past the up-front check
- The counter is incremented with `votes = votes + 1` in SQL, so concurrent
  votes from different voters never overwrite each other
"""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models import Event, PollOption, PollVote
from backend.src.services.event_service import find_active_event
from backend.src.services.exceptions import (
    AlreadyVotedError,
    NotFoundError,
    PersistenceConflictError,
    UnknownOptionError,
    ValidationError,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class VoteService:
    """
    Service for poll votes.

    Usage:
        >>> service = VoteService(db)
        >>> event = service.record_vote("evt_01h...", "Pizza", "usr_01h...")
    """

    def __init__(self, db: Session):
        self.db = db

    def record_vote(self, event_guid: str, option_label: str, voter_id: str) -> Event:
        """
        Record one vote.

        Args:
            event_guid: Event GUID (evt_xxx)
            option_label: Label of the chosen option (exact match)
            voter_id: Reference of the voting user

        Returns:
            The event with refreshed poll tallies

        Raises:
            NotFoundError: If the event is missing, deleted, or has no poll
            ValidationError: If voter_id is blank
            UnknownOptionError: If no option has this label
            AlreadyVotedError: If the voter already voted in this poll
            PersistenceConflictError: If the store rejects the vote
        """
        if not voter_id or not voter_id.strip():
            raise ValidationError("Voter id must not be empty", field="voter_id")

        event = find_active_event(self.db, event_guid)
        poll = event.poll
        if poll is None:
            raise NotFoundError("Poll for event", event_guid)

        option = poll.find_option(option_label)
        if option is None:
            raise UnknownOptionError(option_label)

        if self._has_voted(poll.id, voter_id):
            raise AlreadyVotedError(event_guid, voter_id)

        try:
            self.db.add(PollVote(poll_id=poll.id, option_id=option.id, voter_id=voter_id))
            self.db.flush()

            event_alive = (
                select(Event.id)
                .where(Event.id == event.id, Event.is_deleted.is_(False))
                .exists()
            )
            result = self.db.execute(
                update(PollOption)
                .where(PollOption.id == option.id, event_alive)
                .values(votes=PollOption.votes + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # Event was deleted after it was loaded
                self.db.rollback()
                raise NotFoundError("Event", event_guid)

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "Rejected duplicate vote",
                extra={"event_guid": event_guid, "voter_id": voter_id},
            )
            raise AlreadyVotedError(event_guid, voter_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Failed to record vote",
                extra={"event_guid": event_guid, "voter_id": voter_id, "error": str(e)},
            )
            raise PersistenceConflictError(
                f"Could not record vote on event {event_guid}",
                event_guid=event_guid,
            ) from e

        self.db.refresh(event)
        logger.info(
            f"Recorded vote on event {event_guid}",
            extra={"event_guid": event_guid, "option": option_label},
        )
        return event

    def _has_voted(self, poll_id: int, voter_id: str) -> bool:
        """Whether the voter already has a ballot in this poll."""
        existing = self.db.execute(
            select(PollVote.id).where(
                PollVote.poll_id == poll_id,
                PollVote.voter_id == voter_id,
            )
        ).first()
        return existing is not None
