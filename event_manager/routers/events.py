from fastapi import APIRouter, Depends, HTTPException, status, Query, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from event_manager import schemas
from event_manager.config import DEFAULT_TIMEZONE
from event_manager.database import get_db
from event_manager.services.event_service import EventService
from event_manager.services.attendee_service import AttendeeService
from event_manager.services.speaker_service import SpeakerService
import pytz

router = APIRouter(
    prefix="/events",
    tags=["events"],
)


def resolve_timezone(x_timezone: Optional[str] = Header(default=None, alias="X-Timezone")) -> str:
    timezone_str = x_timezone or DEFAULT_TIMEZONE
    try:
        pytz.timezone(timezone_str)
    except pytz.exceptions.UnknownTimeZoneError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-Timezone header value.")
    return timezone_str


@router.post("/", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: schemas.EventCreate,
    db: AsyncSession = Depends(get_db),
    event_service: EventService = Depends()
):
    """
    Creates a new event with no bookings, active by default.
    - **title**, **location**: required, non-empty
    - **description**: optional
    - **start_date** / **end_date**: ISO 8601; end must be after start
    - **max_capacity**: positive integer
    """
    return await event_service.create_event(db=db, event_data=event)


@router.get("/", response_model=List[schemas.EventResponse])
async def read_events(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    upcoming: bool = Query(False, description="Only events that have not ended yet"),
    db: AsyncSession = Depends(get_db),
    event_service: EventService = Depends(),
    timezone_str: str = Depends(resolve_timezone),
):
    """
    Lists events ordered by start date.
    Dates are returned in the timezone given by the `X-Timezone` header.
    """
    events = await event_service.get_events(db=db, skip=skip, limit=limit, upcoming_only=upcoming)
    return [schemas.EventResponse(**event_model.to_dict(timezone_str)) for event_model in events]


@router.get("/{event_id}", response_model=schemas.EventResponse)
async def read_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    event_service: EventService = Depends(),
    timezone_str: str = Depends(resolve_timezone),
):
    event = await event_service.find_event(db=db, event_id=event_id)
    return schemas.EventResponse(**event.to_dict(timezone_str))


@router.patch("/{event_id}", response_model=schemas.EventResponse)
async def update_event(
    event_id: int,
    event: schemas.EventUpdate,
    db: AsyncSession = Depends(get_db),
    event_service: EventService = Depends()
):
    """
    Partially updates an event. Only supplied fields change; the booking
    counter cannot be set here.
    """
    return await event_service.update_event(db=db, event_id=event_id, event_data=event)


@router.delete("/{event_id}", response_model=schemas.DeleteResponse)
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    event_service: EventService = Depends()
):
    """Deletes an event along with its attendees and speaker assignments."""
    deleted = await event_service.delete_event(db=db, event_id=event_id)
    return schemas.DeleteResponse(success=deleted)


@router.post("/{event_id}/register", response_model=schemas.AttendeeResponse, status_code=status.HTTP_201_CREATED)
async def register_for_event(
    event_id: int,
    attendee: schemas.AttendeeCreate,
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    """
    Registers an attendee for a specific event.
    - Rejects inactive, full, and already started events.
    - Takes one seat from the event's capacity.
    """
    return await attendee_service.register_attendee(db=db, event_id=event_id, attendee_data=attendee)


@router.get("/{event_id}/attendees", response_model=schemas.PaginatedAttendeesResponse)
async def get_event_attendees(
    event_id: int,
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(10, ge=1, le=100, description="Number of items per page"),
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    """
    Returns all registered attendees for an event with pagination.
    """
    return await attendee_service.get_attendees_for_event(db=db, event_id=event_id, page=page, size=size)


@router.get("/{event_id}/speakers", response_model=List[schemas.SpeakerResponse])
async def get_event_speakers(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.get_speakers_for_event(db=db, event_id=event_id)


@router.post(
    "/{event_id}/speakers/{speaker_id}",
    response_model=schemas.EventSpeakerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_speaker(
    event_id: int,
    speaker_id: int,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.assign_speaker(db=db, event_id=event_id, speaker_id=speaker_id)


@router.delete("/{event_id}/speakers/{speaker_id}", response_model=schemas.DeleteResponse)
async def unassign_speaker(
    event_id: int,
    speaker_id: int,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    removed = await speaker_service.unassign_speaker(db=db, event_id=event_id, speaker_id=speaker_id)
    return schemas.DeleteResponse(success=removed)
