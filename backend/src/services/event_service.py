"""
Event service for managing team events.

Provides business logic for creating, retrieving, listing, updating and
soft-deleting events, including photo uploads, first-time poll attachment,
and the notification / mail fan-out that follows every change.

Design:
- Deleted events are invisible to every read and write path
- Input is validated before any photo is uploaded
- Photos uploaded by a failed call are deleted again
- Side effects run after the commit; their failure is reported with the
  event GUID but does not roll the event back
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models import Event, Poll, PollOption
from backend.src.models.notification import NotificationType
from backend.src.services.collaborators import Mailer, Notifier, PhotoFile, PhotoUploader, UserDirectory
from backend.src.services.event_validation import (
    dedupe_participants,
    default_participants,
    reset_poll_options,
    validate_date_range,
    validate_poll_shape,
)
from backend.src.services.exceptions import (
    DirectoryUnavailableError,
    InvalidPollError,
    MailFailedError,
    NotFoundError,
    NotificationFailedError,
    PersistenceConflictError,
    UploadFailedError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

# Category tag passed to the photo uploader
EVENT_PHOTO_CATEGORY = "event_photo"

# Mail template used for invitations
EVENT_MAIL_TEMPLATE = "event"

# Fields update() accepts
UPDATABLE_FIELDS = {
    "title",
    "description",
    "type",
    "start_date",
    "end_date",
    "participants",
    "poll",
}

# Fields that cannot be cleared by an update
REQUIRED_FIELDS = {"title", "type", "start_date", "participants"}


def find_active_event(db: Session, guid: str) -> Event:
    """
    Load a non-deleted event by GUID.

    Raises:
        NotFoundError: If the GUID is malformed, unknown, or soft-deleted
    """
    if not GuidService.validate_guid(guid, "evt"):
        raise NotFoundError("Event", guid)

    try:
        uuid_value = Event.parse_guid(guid)
    except ValueError:
        raise NotFoundError("Event", guid)

    event = (
        db.query(Event)
        .filter(Event.uuid == uuid_value, Event.is_deleted.is_(False))
        .first()
    )
    if not event:
        raise NotFoundError("Event", guid)

    return event


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the search text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class EventService:
    """
    Service for the event lifecycle.

    Handles:
    - Create with photo upload, default participants and poll initialization
    - Get / list of non-deleted events (list supports title search)
    - Update with photo replacement and first-time poll attachment
    - Soft delete
    - Notification on every change, invitation mail on create

    Usage:
        >>> service = EventService(db, uploader, notifier, mailer, directory)
        >>> event = service.create(
        ...     title="Standup",
        ...     type="meeting",
        ...     start_date=datetime(2026, 3, 2, 9, 0),
        ... )
    """

    def __init__(
        self,
        db: Session,
        uploader: PhotoUploader,
        notifier: Notifier,
        mailer: Mailer,
        directory: UserDirectory,
    ):
        """
        Initialize event service.

        Args:
            db: SQLAlchemy database session
            uploader: Photo storage
            notifier: Notification recorder
            mailer: Mail sender
            directory: Source of default participants
        """
        self.db = db
        self.uploader = uploader
        self.notifier = notifier
        self.mailer = mailer
        self.directory = directory

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_guid(self, guid: str) -> Event:
        """
        Get a non-deleted event by GUID.

        Args:
            guid: Event GUID (evt_xxx)

        Raises:
            NotFoundError: If event not found or soft-deleted
        """
        return find_active_event(self.db, guid)

    def list(self, search: Optional[str] = None) -> List[Event]:
        """
        List non-deleted events.

        Args:
            search: Optional case-insensitive substring of the title

        Returns:
            Events ordered by creation (internal id ascending)
        """
        query = self.db.query(Event).filter(Event.is_deleted.is_(False))

        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.filter(Event.title.ilike(pattern, escape="\\"))

        return query.order_by(Event.id.asc()).all()

    @staticmethod
    def build_event_response(event: Event) -> Dict[str, Any]:
        """
        Build a response dictionary for an event.

        Returns:
            Dictionary suitable for EventResponse schema
        """
        poll_data = None
        if event.poll is not None:
            poll_data = {
                "question": event.poll.question,
                "options": [
                    {
                        "label": option.label,
                        "votes": option.votes,
                        "voters": option.voters,
                    }
                    for option in event.poll.options
                ],
            }

        return {
            "guid": event.guid,
            "title": event.title,
            "description": event.description,
            "type": event.type,
            "start_date": event.start_date,
            "end_date": event.end_date,
            "participants": list(event.participants or []),
            "photo": list(event.photo or []),
            "poll": poll_data,
            "is_deleted": event.is_deleted,
            "created_at": event.created_at,
            "updated_at": event.updated_at,
        }

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        title: str,
        type: str,
        start_date: datetime,
        end_date: Optional[datetime] = None,
        description: Optional[str] = None,
        participants: Optional[List[str]] = None,
        poll: Optional[Dict[str, Any]] = None,
        files: Optional[List[PhotoFile]] = None,
    ) -> Event:
        """
        Create a new event.

        Args:
            title: Event title
            type: Event type tag
            start_date: Start timestamp
            end_date: End timestamp (defaults to start_date)
            description: Optional description
            participants: User references; empty means every active user
            poll: Optional {"question": str, "options": [{"label": str, ...}]}.
                Caller-supplied votes/voters are discarded.
            files: Photos to attach, in display order

        Returns:
            Created Event instance

        Raises:
            InvalidDateRangeError: If end_date < start_date
            InvalidPollError: If the poll shape is invalid
            UploadFailedError: If any photo upload fails (nothing is kept)
            DirectoryUnavailableError: If default participants cannot be read
            PersistenceConflictError: If the store rejects the event
            NotificationFailedError / MailFailedError: If a side effect fails
                after the event was stored (event_guid is set on the error)
        """
        if end_date is None:
            end_date = start_date
        validate_date_range(start_date, end_date)

        poll_options = None
        if poll is not None:
            validate_poll_shape(poll)
            poll_options = reset_poll_options(poll["options"])

        photos = self._upload_photos(files)

        try:
            participant_refs = dedupe_participants(participants or [])
            if not participant_refs:
                participant_refs = self._default_participants()

            event = Event(
                title=title,
                description=description,
                type=type,
                start_date=start_date,
                end_date=end_date,
                participants=participant_refs,
                photo=photos,
                is_deleted=False,
            )
            if poll_options is not None:
                event.poll = self._build_poll(poll["question"], poll_options)

            self._commit(event, "create")
        except PersistenceConflictError:
            self._discard_photos(photos)
            raise

        logger.info(
            f"Created event: {event.guid} - {title}",
            extra={
                "guid": event.guid,
                "participants": len(event.participants),
                "photos": len(event.photo),
                "has_poll": event.poll is not None,
            },
        )

        self._notify(event, "Event Created", f"Event {event.title} has been created")
        self._mail_participants(event)

        return event

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        guid: str,
        files: Optional[List[PhotoFile]] = None,
        **updates: Any,
    ) -> Event:
        """
        Update an event.

        Args:
            guid: Event GUID (evt_xxx)
            files: New photos. When given (even empty), the uploaded list
                replaces the current photos; None keeps them.
            **updates: Fields to update (see UPDATABLE_FIELDS). A poll may
                only be attached to an event that has none yet.

        Returns:
            Updated Event instance

        Raises:
            NotFoundError: If event not found or soft-deleted
            ValidationError: If an unknown or required field is cleared
            InvalidDateRangeError: If the resulting end_date < start_date
            InvalidPollError: If the poll is invalid or one already exists
            UploadFailedError: If any photo upload fails (nothing is kept)
            PersistenceConflictError: If the store rejects the update
            NotificationFailedError: If the notification fails after commit
        """
        event = self.get_by_guid(guid)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown event fields: {', '.join(sorted(unknown))}"
            )

        for field in REQUIRED_FIELDS:
            if field in updates and updates[field] is None:
                raise ValidationError(f"Field '{field}' cannot be cleared", field=field)

        poll = updates.pop("poll", None)
        poll_options = None
        if poll is not None:
            if event.poll is not None:
                raise InvalidPollError(
                    "Event already has a poll; existing polls cannot be replaced by an update"
                )
            validate_poll_shape(poll)
            poll_options = reset_poll_options(poll["options"])

        start_date = updates.get("start_date", event.start_date)
        if "end_date" in updates:
            end_date = updates["end_date"] if updates["end_date"] is not None else start_date
            updates["end_date"] = end_date
        else:
            end_date = event.end_date
        validate_date_range(start_date, end_date)

        if "participants" in updates:
            updates["participants"] = dedupe_participants(updates["participants"])

        photos = self._upload_photos(files) if files is not None else None

        try:
            for field, value in updates.items():
                setattr(event, field, value)
            if photos is not None:
                event.photo = photos
            if poll_options is not None:
                event.poll = self._build_poll(poll["question"], poll_options)

            self._commit(event, "update", require_active=True)
        except (NotFoundError, PersistenceConflictError):
            self._discard_photos(photos or [])
            raise

        logger.info(
            f"Updated event: {event.guid}",
            extra={
                "guid": event.guid,
                "fields": sorted(updates),
                "photos_replaced": photos is not None,
                "poll_attached": poll_options is not None,
            },
        )

        self._notify(event, "Event Updated", f"Event {event.title} has been updated")

        return event

    # =========================================================================
    # Delete
    # =========================================================================

    def remove(self, guid: str) -> None:
        """
        Soft delete an event.

        The row stays in the table with is_deleted set; it is no longer
        returned by get/list/update and cannot be voted on.

        Raises:
            NotFoundError: If event not found or already deleted
            PersistenceConflictError: If the store rejects the change
            NotificationFailedError: If the notification fails after commit
        """
        event = self.get_by_guid(guid)

        try:
            result = self.db.execute(
                sql_update(Event)
                .where(Event.id == event.id, Event.is_deleted.is_(False))
                .values(is_deleted=True, deleted_at=datetime.utcnow())
            )
            if result.rowcount == 0:
                # Lost a race with a concurrent delete
                self.db.rollback()
                raise NotFoundError("Event", guid)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete event {guid}: {e}")
            raise PersistenceConflictError(f"Could not delete event {guid}") from e

        self.db.refresh(event)
        logger.info(f"Soft deleted event: {guid}")

        self._notify(event, "Event Deleted", f"Event {event.title} has been deleted")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_poll(self, question: str, options: List[Dict[str, Any]]) -> Poll:
        """Create a poll with zeroed options in the given order."""
        return Poll(
            question=question.strip(),
            options=[
                PollOption(label=option["label"], position=index, votes=option["votes"])
                for index, option in enumerate(options)
            ],
        )

    def _default_participants(self) -> List[str]:
        """Active users from the directory, wrapped into the service error family."""
        try:
            return dedupe_participants(default_participants(self.directory))
        except DirectoryUnavailableError:
            raise
        except Exception as e:
            logger.error(f"User directory lookup failed: {e}", exc_info=True)
            raise DirectoryUnavailableError(f"User directory is unavailable: {e}") from e

    def _upload_photos(self, files: Optional[List[PhotoFile]]) -> List[str]:
        """
        Upload files in order, all or nothing.

        Raises:
            UploadFailedError: After deleting the photos this call stored
        """
        stored: List[str] = []
        for file in files or []:
            try:
                stored.append(self.uploader.upload(file, EVENT_PHOTO_CATEGORY))
            except Exception as e:
                logger.error(
                    f"Photo upload failed after {len(stored)} of {len(files)} files: {e}"
                )
                self._discard_photos(stored)
                if isinstance(e, UploadFailedError):
                    raise
                raise UploadFailedError(f"Could not upload photo '{file.filename}': {e}") from e
        return stored

    def _discard_photos(self, stored: List[str]) -> None:
        """Best-effort removal of photos stored by a failed operation."""
        for stored_ref in stored:
            try:
                self.uploader.delete(stored_ref)
            except Exception as e:
                # Leftover files are logged so they can be cleaned manually
                logger.warning(
                    f"Could not delete orphaned photo {stored_ref}: {e}",
                    extra={"stored_ref": stored_ref},
                )

    def _commit(self, event: Event, action: str, require_active: bool = False) -> None:
        """
        Persist the aggregate.

        With require_active the write only goes through while the row is
        still not deleted, so an update cannot land on an event removed
        after it was read.

        Raises:
            NotFoundError: If require_active and the event was deleted meanwhile
            PersistenceConflictError: If the store rejects the write
        """
        try:
            if require_active:
                result = self.db.execute(
                    sql_update(Event)
                    .where(Event.id == event.id, Event.is_deleted.is_(False))
                    .values(updated_at=datetime.utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    self.db.rollback()
                    raise NotFoundError("Event", event.guid)
            self.db.add(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action} event: {e}")
            raise PersistenceConflictError(f"Could not {action} event: {e.__class__.__name__}") from e

        self.db.refresh(event)

    def _notify(self, event: Event, title: str, body: str) -> None:
        """
        Record a notification about an already committed change.

        Raises:
            NotificationFailedError: With event_guid set
        """
        try:
            self.notifier.notify(
                title,
                body,
                NotificationType.EVENT.value,
                event.guid,
                datetime.utcnow(),
            )
        except NotificationFailedError as e:
            e.event_guid = event.guid
            raise
        except Exception as e:
            logger.error(f"Notification '{title}' failed for {event.guid}: {e}", exc_info=True)
            raise NotificationFailedError(
                f"Could not record notification '{title}': {e}",
                event_guid=event.guid,
            ) from e

    def _mail_participants(self, event: Event) -> None:
        """
        Send the invitation mail to every participant.

        Raises:
            MailFailedError: With event_guid set
        """
        if not event.participants:
            logger.info(
                f"No participants to mail for {event.guid}",
                extra={"guid": event.guid},
            )
            return

        context = {
            "name": event.description or "",
            "title": event.title,
            "type": event.type,
            "start_date": event.start_date.isoformat(),
            "end_date": event.end_date.isoformat(),
        }
        try:
            self.mailer.send(
                list(event.participants),
                f"{event.title} - {event.type}",
                EVENT_MAIL_TEMPLATE,
                context,
            )
        except MailFailedError as e:
            e.event_guid = event.guid
            raise
        except Exception as e:
            logger.error(f"Invitation mail failed for {event.guid}: {e}", exc_info=True)
            raise MailFailedError(
                f"Could not send invitation mail: {e}",
                event_guid=event.guid,
            ) from e
