from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, update
from event_manager.booking import ADMISSION_DELTA, REMOVAL_DELTA, check_admission, status_change_delta
from event_manager.exceptions import ConcurrentModification, EventFull, NotFound
from event_manager.models import Attendee, RegistrationStatus, utcnow
from event_manager.schemas import AttendeeCreate, AttendeeUpdate, PaginatedAttendeesResponse
from event_manager.services.event_service import EventService
import logging

logger = logging.getLogger(__name__)

STATUS_WRITE_ATTEMPTS = 3


class AttendeeService:
    def __init__(self):
        self.event_service = EventService()

    async def register_attendee(self, db: AsyncSession, event_id: int, attendee_data: AttendeeCreate) -> Attendee:
        """
        Admits a new attendee for the event.

        Rules are checked in order (missing, inactive, full, already started).
        The seat is then taken with a conditional UPDATE, so a concurrent
        registration that took the last seat first makes this one fail with
        EventFull. The seat and the attendee row commit together.
        """
        event = await self.event_service.get_event_by_id(db, event_id)
        check_admission(event)

        try:
            if not await self.event_service.reserve_booking(db, event_id):
                # Lost a race since the read above; report what the row says now
                await db.rollback()
                check_admission(await self.event_service.get_event_by_id(db, event_id))
                raise EventFull()

            db_attendee = Attendee(
                event_id=event_id,
                name=attendee_data.name,
                email=attendee_data.email,
                registration_status=attendee_data.registration_status,
            )
            db.add(db_attendee)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(db_attendee)
        logger.info(
            "Registered attendee %s for event %s as %s (bookings %+d)",
            db_attendee.id,
            event_id,
            db_attendee.registration_status.value,
            ADMISSION_DELTA,
        )
        return db_attendee

    async def get_attendee_by_id(self, db: AsyncSession, attendee_id: int) -> Attendee | None:
        stmt = select(Attendee).where(Attendee.id == attendee_id).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalars().first()

    async def find_attendee(self, db: AsyncSession, attendee_id: int) -> Attendee:
        attendee = await self.get_attendee_by_id(db, attendee_id)
        if attendee is None:
            raise NotFound.for_entity("Attendee")
        return attendee

    async def get_all_attendees(self, db: AsyncSession) -> list[Attendee]:
        result = await db.execute(select(Attendee).order_by(Attendee.id))
        return list(result.scalars().all())

    async def get_attendees_for_event(
        self, db: AsyncSession, event_id: int, page: int = 1, size: int = 10
    ) -> PaginatedAttendeesResponse:
        if page < 1:
            page = 1
        if size < 1:
            size = 10

        offset = (page - 1) * size

        await self.event_service.find_event(db, event_id)

        total_count_stmt = select(func.count(Attendee.id)).where(Attendee.event_id == event_id)
        total_count_result = await db.execute(total_count_stmt)
        total_attendees = total_count_result.scalar_one_or_none() or 0

        attendees_stmt = (
            select(Attendee)
            .where(Attendee.event_id == event_id)
            .order_by(Attendee.id)
            .offset(offset)
            .limit(size)
        )
        attendees_result = await db.execute(attendees_stmt)
        attendees = attendees_result.scalars().all()

        total_pages = (total_attendees + size - 1) // size  # Ceiling division

        return PaginatedAttendeesResponse(
            total=total_attendees,
            page=page,
            size=size,
            pages=total_pages,
            items=list(attendees),
        )

    async def update_attendee(self, db: AsyncSession, attendee_id: int, attendee_data: AttendeeUpdate) -> Attendee:
        """
        Applies a partial update. A registration status change adjusts the
        owning event's booking counter in the same transaction.

        The row is written only while it still holds the status the delta was
        computed from. If another request changed the status in between, the
        attendee is re-read and the delta recomputed.
        """
        changes = attendee_data.model_dump(exclude_unset=True)

        for _ in range(STATUS_WRITE_ATTEMPTS):
            attendee = await self.find_attendee(db, attendee_id)
            event_id = attendee.event_id
            old_status = attendee.registration_status
            new_status = changes.get("registration_status", old_status)
            delta = status_change_delta(old_status, new_status)

            stmt = (
                update(Attendee)
                .where(Attendee.id == attendee_id)
                .where(Attendee.registration_status == old_status)
                .values(**changes, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            try:
                result = await db.execute(stmt)
                if result.rowcount == 1:
                    await self.event_service.adjust_bookings(db, event_id, delta)
                    await db.commit()
                    break
                await db.rollback()
            except Exception:
                await db.rollback()
                raise
            logger.info("Attendee %s changed status since it was read; retrying update", attendee_id)
        else:
            raise ConcurrentModification()

        attendee = await self.find_attendee(db, attendee_id)
        if old_status != new_status:
            logger.info(
                "Attendee %s status %s -> %s (event %s bookings %+d)",
                attendee_id,
                RegistrationStatus(old_status).value,
                attendee.registration_status.value,
                event_id,
                delta,
            )
        return attendee

    async def delete_attendee(self, db: AsyncSession, attendee_id: int) -> bool:
        """
        Deletes the attendee and releases the seat taken at admission.
        Returns False when the attendee does not exist, including when a
        concurrent request deleted it first.
        """
        attendee = await self.get_attendee_by_id(db, attendee_id)
        if attendee is None:
            return False

        event_id = attendee.event_id
        try:
            result = await db.execute(
                delete(Attendee)
                .where(Attendee.id == attendee_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await db.rollback()
                logger.info("Attendee %s was already deleted", attendee_id)
                return False
            await self.event_service.adjust_bookings(db, event_id, REMOVAL_DELTA)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Deleted attendee %s from event %s", attendee_id, event_id)
        return True
