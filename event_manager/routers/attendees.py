from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from event_manager import schemas
from event_manager.database import get_db
from event_manager.services.attendee_service import AttendeeService
from event_manager.services.invitation_service import send_invitation

router = APIRouter(
    prefix="/attendees",
    tags=["attendees"],
)


@router.post("/", response_model=schemas.AttendeeResponse, status_code=status.HTTP_201_CREATED)
async def create_attendee(
    registration: schemas.AttendeeRegistration,
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    """
    Registers an attendee for the event named by **event_id**.
    Same admission rules as `POST /events/{event_id}/register`.
    """
    attendee_data = schemas.AttendeeCreate(**registration.model_dump(exclude={"event_id"}))
    return await attendee_service.register_attendee(
        db=db, event_id=registration.event_id, attendee_data=attendee_data
    )


@router.get("/", response_model=List[schemas.AttendeeResponse])
async def read_attendees(
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    return await attendee_service.get_all_attendees(db=db)


@router.get("/{attendee_id}", response_model=schemas.AttendeeResponse)
async def read_attendee(
    attendee_id: int,
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    return await attendee_service.find_attendee(db=db, attendee_id=attendee_id)


@router.patch("/{attendee_id}", response_model=schemas.AttendeeResponse)
async def update_attendee(
    attendee_id: int,
    attendee: schemas.AttendeeUpdate,
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    """
    Partially updates an attendee. Moving to or from **confirmed** adjusts
    the event's booking counter.
    """
    return await attendee_service.update_attendee(db=db, attendee_id=attendee_id, attendee_data=attendee)


@router.delete("/{attendee_id}", response_model=schemas.DeleteResponse)
async def delete_attendee(
    attendee_id: int,
    db: AsyncSession = Depends(get_db),
    attendee_service: AttendeeService = Depends()
):
    deleted = await attendee_service.delete_attendee(db=db, attendee_id=attendee_id)
    return schemas.DeleteResponse(success=deleted)


@router.post("/{attendee_id}/invitation", response_model=schemas.InvitationResponse)
async def invite_attendee(attendee_id: int, invitation: Optional[schemas.InvitationRequest] = None):
    """Placeholder: no invitation is actually delivered."""
    message = invitation.message if invitation else None
    return await send_invitation(attendee_id=attendee_id, message=message)
