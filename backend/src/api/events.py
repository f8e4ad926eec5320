"""
Events API endpoints for managing team events.

Provides endpoints for:
- Listing events with title search
- Getting event details
- Creating events with photos and an optional poll
- Updating events (photo replacement, first poll attachment)
- Deleting events (soft delete)
- Voting in an event's poll

Design:
- Uses dependency injection for services and their collaborators
- Create/update take multipart forms: a JSON `payload` part plus `photos` files
- All endpoints use GUID format (evt_xxx) for identifiers
- Failures after the event was stored return 409 with the event GUID
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.db.database import get_db
from backend.src.schemas.event import EventCreate, EventListResponse, EventResponse, EventUpdate
from backend.src.schemas.poll import VoteRequest
from backend.src.services.collaborators import Mailer, Notifier, PhotoFile, PhotoUploader, UserDirectory
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    AlreadyVotedError,
    NotFoundError,
    PersistenceConflictError,
    ValidationError,
)
from backend.src.services.mail_service import MailService
from backend.src.services.notification_service import NotificationService
from backend.src.services.photo_storage_service import PhotoStorageService
from backend.src.services.user_directory_service import UserDirectoryService
from backend.src.services.vote_service import VoteService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_photo_uploader() -> PhotoUploader:
    """Create the photo uploader from settings."""
    settings = get_settings()
    return PhotoStorageService(settings.photo_storage_dir, settings.photo_base_url)


def get_notifier(db: Session = Depends(get_db)) -> Notifier:
    """Create NotificationService instance with database session."""
    return NotificationService(db=db)


def get_mailer(db: Session = Depends(get_db)) -> Mailer:
    """Create MailService instance with database session."""
    settings = get_settings()
    return MailService(db=db, template_dir=settings.mail_template_dir, sender=settings.mail_sender)


def get_user_directory(db: Session = Depends(get_db)) -> UserDirectory:
    """Create UserDirectoryService instance with database session."""
    return UserDirectoryService(db=db)


def get_event_service(
    db: Session = Depends(get_db),
    uploader: PhotoUploader = Depends(get_photo_uploader),
    notifier: Notifier = Depends(get_notifier),
    mailer: Mailer = Depends(get_mailer),
    directory: UserDirectory = Depends(get_user_directory),
) -> EventService:
    """Create EventService instance with database session and collaborators."""
    return EventService(
        db=db,
        uploader=uploader,
        notifier=notifier,
        mailer=mailer,
        directory=directory,
    )


def get_vote_service(db: Session = Depends(get_db)) -> VoteService:
    """Create VoteService instance with database session."""
    return VoteService(db=db)


# ============================================================================
# Helpers
# ============================================================================


def _validation_detail(e: PydanticValidationError) -> List[Dict[str, Any]]:
    """Error list of a payload validation failure, safe for JSON."""
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in e.errors()
    ]


async def _read_photos(photos: Optional[List[UploadFile]]) -> Optional[List[PhotoFile]]:
    """Read uploaded parts into PhotoFile objects, keeping their order."""
    if photos is None:
        return None
    files = []
    for photo in photos:
        content = await photo.read()
        files.append(
            PhotoFile(
                filename=photo.filename or "",
                content=content,
                content_type=photo.content_type,
            )
        )
    return files


def _conflict_detail(e: PersistenceConflictError) -> Dict[str, Any]:
    """409 body; event_guid tells the client the event exists despite the error."""
    return {
        "message": str(e),
        "error": e.__class__.__name__,
        "event_guid": e.event_guid,
    }


# ============================================================================
# API Endpoints
# ============================================================================


@router.get(
    "",
    response_model=EventListResponse,
    summary="List events",
    description="List non-deleted events, optionally filtered by title",
)
async def list_events(
    search: Optional[str] = Query(
        default=None,
        max_length=255,
        description="Case-insensitive substring of the event title",
    ),
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    """
    List events in creation order.

    Example:
        GET /api/events?search=standup
    """
    try:
        events = event_service.list(search=search)

        logger.info(
            "Listed events",
            extra={"count": len(events), "search": search},
        )

        return EventListResponse(
            items=[EventResponse(**event_service.build_event_response(e)) for e in events],
            total=len(events),
        )

    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events",
        )


@router.get(
    "/{guid}",
    response_model=EventResponse,
    summary="Get event details",
)
async def get_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Get a single event by GUID.

    Raises:
        404: Event not found or deleted
    """
    try:
        event = event_service.get_by_guid(guid)
        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {guid} not found",
        )

    except Exception as e:
        logger.error(f"Error getting event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get event",
        )


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new event",
    description="Create an event from a JSON payload plus optional photo files",
)
async def create_event(
    payload: str = Form(..., description="EventCreate as JSON"),
    photos: Optional[List[UploadFile]] = File(default=None, description="Event photos, in display order"),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Create a new event.

    Form Fields:
        payload: JSON object with title, type, start_date (required) and
            description, end_date, participants, poll (optional)
        photos: Zero or more image files

    Returns:
        Created event (201 Created)

    Raises:
        400: Invalid date range or poll
        409: Photo upload, storage, notification or mail failure
        422: Malformed payload
    """
    try:
        event_data = EventCreate.model_validate_json(payload)
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=_validation_detail(e),
        )

    try:
        files = await _read_photos(photos)
        event = event_service.create(
            title=event_data.title,
            type=event_data.type,
            start_date=event_data.start_date,
            end_date=event_data.end_date,
            description=event_data.description,
            participants=event_data.participants,
            poll=event_data.poll.model_dump() if event_data.poll else None,
            files=files,
        )

        logger.info(f"Created event: {event.guid}")

        return EventResponse(**event_service.build_event_response(event))

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except PersistenceConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_conflict_detail(e),
        )

    except Exception as e:
        logger.error(f"Error creating event: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event",
        )


@router.patch(
    "/{guid}",
    response_model=EventResponse,
    summary="Update an event",
    description="Partially update an event; sending photos replaces the current ones",
)
async def update_event(
    guid: str,
    payload: Optional[str] = Form(default=None, description="EventUpdate as JSON"),
    photos: Optional[List[UploadFile]] = File(default=None, description="Replacement photos"),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Update an existing event.

    Only fields present in the payload are changed. When photos are sent
    they replace the event's photo list; otherwise photos are kept.

    Raises:
        400: Invalid date range, or a poll sent for an event that has one
        404: Event not found or deleted
        409: Photo upload, storage or notification failure
        422: Malformed payload
    """
    try:
        event_data = EventUpdate.model_validate_json(payload or "{}")
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=_validation_detail(e),
        )

    try:
        files = await _read_photos(photos)
        updates = event_data.model_dump(exclude_unset=True)

        event = event_service.update(guid, files=files, **updates)

        logger.info(f"Updated event: {guid}")

        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {guid} not found",
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except PersistenceConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_conflict_detail(e),
        )

    except Exception as e:
        logger.error(f"Error updating event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event",
        )


@router.delete(
    "/{guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event",
    description="Soft delete an event",
)
async def delete_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> Response:
    """
    Soft delete an event.

    Raises:
        404: Event not found or already deleted
        409: Storage or notification failure
    """
    try:
        event_service.remove(guid)

        logger.info(f"Deleted event: {guid}")

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {guid} not found",
        )

    except PersistenceConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_conflict_detail(e),
        )

    except Exception as e:
        logger.error(f"Error deleting event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete event",
        )


@router.post(
    "/{guid}/votes",
    response_model=EventResponse,
    summary="Vote in an event poll",
)
async def record_vote(
    guid: str,
    vote: VoteRequest,
    vote_service: VoteService = Depends(get_vote_service),
) -> EventResponse:
    """
    Record one vote for an option of the event's poll.

    Raises:
        400: Unknown option label
        404: Event not found, deleted, or without a poll
        409: Voter already voted in this poll
    """
    try:
        event = vote_service.record_vote(guid, vote.option_label, vote.voter_id)
        return EventResponse(**EventService.build_event_response(event))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except AlreadyVotedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(e),
                "error": e.__class__.__name__,
                "event_guid": e.event_guid,
            },
        )

    except PersistenceConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_conflict_detail(e),
        )

    except Exception as e:
        logger.error(f"Error recording vote on {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record vote",
        )
