from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from event_manager import schemas
from event_manager.database import get_db
from event_manager.services.speaker_service import SpeakerService

router = APIRouter(
    prefix="/speakers",
    tags=["speakers"],
)


@router.post("/", response_model=schemas.SpeakerResponse, status_code=status.HTTP_201_CREATED)
async def create_speaker(
    speaker: schemas.SpeakerCreate,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.create_speaker(db=db, speaker_data=speaker)


@router.get("/", response_model=List[schemas.SpeakerResponse])
async def read_speakers(
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.get_speakers(db=db)


@router.get("/{speaker_id}", response_model=schemas.SpeakerResponse)
async def read_speaker(
    speaker_id: int,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.find_speaker(db=db, speaker_id=speaker_id)


@router.patch("/{speaker_id}", response_model=schemas.SpeakerResponse)
async def update_speaker(
    speaker_id: int,
    speaker: schemas.SpeakerUpdate,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    return await speaker_service.update_speaker(db=db, speaker_id=speaker_id, speaker_data=speaker)


@router.delete("/{speaker_id}", response_model=schemas.DeleteResponse)
async def delete_speaker(
    speaker_id: int,
    db: AsyncSession = Depends(get_db),
    speaker_service: SpeakerService = Depends()
):
    """Deletes a speaker and removes it from every event it was assigned to."""
    deleted = await speaker_service.delete_speaker(db=db, speaker_id=speaker_id)
    return schemas.DeleteResponse(success=deleted)
