from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from event_manager.exceptions import DuplicateAssignment, NotFound
from event_manager.models import EventSpeaker, Speaker, utcnow
from event_manager.schemas import SpeakerCreate, SpeakerUpdate
from event_manager.services.event_service import EventService
import logging

logger = logging.getLogger(__name__)


class SpeakerService:
    def __init__(self):
        self.event_service = EventService()

    async def create_speaker(self, db: AsyncSession, speaker_data: SpeakerCreate) -> Speaker:
        db_speaker = Speaker(**speaker_data.model_dump())
        db.add(db_speaker)
        await db.commit()
        await db.refresh(db_speaker)
        logger.info("Created speaker %s", db_speaker.id)
        return db_speaker

    async def get_speakers(self, db: AsyncSession) -> list[Speaker]:
        result = await db.execute(select(Speaker).order_by(Speaker.id))
        return list(result.scalars().all())

    async def get_speaker_by_id(self, db: AsyncSession, speaker_id: int) -> Speaker | None:
        stmt = select(Speaker).where(Speaker.id == speaker_id).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalars().first()

    async def find_speaker(self, db: AsyncSession, speaker_id: int) -> Speaker:
        speaker = await self.get_speaker_by_id(db, speaker_id)
        if speaker is None:
            raise NotFound.for_entity("Speaker")
        return speaker

    async def get_speakers_for_event(self, db: AsyncSession, event_id: int) -> list[Speaker]:
        await self.event_service.find_event(db, event_id)
        stmt = (
            select(Speaker)
            .join(EventSpeaker, EventSpeaker.speaker_id == Speaker.id)
            .where(EventSpeaker.event_id == event_id)
            .order_by(EventSpeaker.assigned_at, EventSpeaker.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def update_speaker(self, db: AsyncSession, speaker_id: int, speaker_data: SpeakerUpdate) -> Speaker:
        speaker = await self.find_speaker(db, speaker_id)
        try:
            for field, value in speaker_data.model_dump(exclude_unset=True).items():
                setattr(speaker, field, value)
            speaker.updated_at = utcnow()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await db.refresh(speaker)
        return speaker

    async def delete_speaker(self, db: AsyncSession, speaker_id: int) -> bool:
        """Deletes the speaker and every event assignment it has."""
        speaker = await self.get_speaker_by_id(db, speaker_id)
        if speaker is None:
            return False

        try:
            await db.execute(delete(EventSpeaker).where(EventSpeaker.speaker_id == speaker_id))
            await db.execute(delete(Speaker).where(Speaker.id == speaker_id))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Deleted speaker %s", speaker_id)
        return True

    async def assign_speaker(self, db: AsyncSession, event_id: int, speaker_id: int) -> EventSpeaker:
        await self.event_service.find_event(db, event_id)
        await self.find_speaker(db, speaker_id)

        existing_stmt = select(EventSpeaker).where(
            EventSpeaker.event_id == event_id, EventSpeaker.speaker_id == speaker_id
        )
        existing = (await db.execute(existing_stmt)).scalars().first()
        if existing:
            raise DuplicateAssignment(
                f"Speaker with id {speaker_id} is already assigned to event with id {event_id}"
            )

        assignment = EventSpeaker(event_id=event_id, speaker_id=speaker_id)
        db.add(assignment)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await db.refresh(assignment)
        logger.info("Assigned speaker %s to event %s", speaker_id, event_id)
        return assignment

    async def unassign_speaker(self, db: AsyncSession, event_id: int, speaker_id: int) -> bool:
        stmt = delete(EventSpeaker).where(
            EventSpeaker.event_id == event_id, EventSpeaker.speaker_id == speaker_id
        )
        try:
            result = await db.execute(stmt)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result.rowcount > 0
