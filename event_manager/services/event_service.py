from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from event_manager.exceptions import InvalidDateRange, NotFound
from event_manager.models import Event, Attendee, EventSpeaker, as_utc, utcnow
from event_manager.schemas import EventCreate, EventUpdate
import logging
import pytz

logger = logging.getLogger(__name__)


class EventService:
    async def create_event(self, db: AsyncSession, event_data: EventCreate) -> Event:
        # Ensure start_date and end_date are timezone-aware (UTC) for storage
        utc_start_date = event_data.start_date.astimezone(pytz.utc)
        utc_end_date = event_data.end_date.astimezone(pytz.utc)

        db_event = Event(
            title=event_data.title,
            description=event_data.description,
            location=event_data.location,
            start_date=utc_start_date,
            end_date=utc_end_date,
            max_capacity=event_data.max_capacity,
            current_bookings=0,
            is_active=True,
        )
        db.add(db_event)
        await db.commit()
        await db.refresh(db_event)
        logger.info("Created event %s (capacity %s)", db_event.id, db_event.max_capacity)
        return db_event

    async def get_events(
        self, db: AsyncSession, skip: int = 0, limit: int = 100, upcoming_only: bool = False
    ) -> list[Event]:
        """
        Retrieves events ordered by start date.
        With upcoming_only, only events whose end_date is in the future are returned.
        """
        stmt = select(Event)
        if upcoming_only:
            stmt = stmt.where(Event.end_date > utcnow())
        stmt = stmt.order_by(Event.start_date, Event.id).offset(skip).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_event_by_id(self, db: AsyncSession, event_id: int) -> Event | None:
        stmt = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalars().first()

    async def find_event(self, db: AsyncSession, event_id: int) -> Event:
        event = await self.get_event_by_id(db, event_id)
        if event is None:
            raise NotFound.for_entity("Event")
        return event

    async def update_event(self, db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
        """
        Applies only the fields present in the request. The merged start/end
        dates are checked before anything is written, so a rejected update
        leaves the row (updated_at included) untouched.
        """
        event = await self.find_event(db, event_id)
        changes = event_data.model_dump(exclude_unset=True)

        for field in ("start_date", "end_date"):
            if field in changes:
                changes[field] = changes[field].astimezone(pytz.utc)

        final_start = changes.get("start_date", as_utc(event.start_date))
        final_end = changes.get("end_date", as_utc(event.end_date))
        if final_end <= final_start:
            raise InvalidDateRange()

        try:
            for field, value in changes.items():
                setattr(event, field, value)
            event.updated_at = utcnow()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await db.refresh(event)
        logger.info("Updated event %s: %s", event.id, sorted(changes))
        return event

    async def delete_event(self, db: AsyncSession, event_id: int) -> bool:
        """Deletes the event together with its attendees and speaker assignments."""
        event = await self.get_event_by_id(db, event_id)
        if event is None:
            return False

        try:
            await db.execute(delete(Attendee).where(Attendee.event_id == event_id))
            await db.execute(delete(EventSpeaker).where(EventSpeaker.event_id == event_id))
            await db.execute(delete(Event).where(Event.id == event_id))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Deleted event %s", event_id)
        return True

    # Booking counter primitives. These are the only writers of
    # current_bookings and run inside the caller's transaction; the caller
    # commits or rolls back.

    async def reserve_booking(self, db: AsyncSession, event_id: int) -> bool:
        """Take one seat if the event is active and below capacity. Returns False when no row matched."""
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.is_active.is_(True))
            .where(Event.current_bookings < Event.max_capacity)
            .values(current_bookings=Event.current_bookings + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def adjust_bookings(self, db: AsyncSession, event_id: int, delta: int) -> None:
        """
        Apply a relative adjustment to the booking counter, never going below zero.
        A decrement against a counter already at zero is logged and skipped.
        """
        if delta == 0:
            return
        stmt = update(Event).where(Event.id == event_id)
        if delta < 0:
            stmt = stmt.where(Event.current_bookings >= -delta)
        stmt = stmt.values(
            current_bookings=Event.current_bookings + delta, updated_at=utcnow()
        ).execution_options(synchronize_session=False)
        result = await db.execute(stmt)
        if result.rowcount == 1:
            return

        if delta < 0:
            clamp = (
                update(Event)
                .where(Event.id == event_id)
                .where(Event.current_bookings > 0)
                .values(current_bookings=0, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await db.execute(clamp)
            logger.warning(
                "Booking counter for event %s would drop below zero (delta %s); clamped at 0",
                event_id,
                delta,
            )
        else:
            logger.warning("Booking counter adjustment for missing event %s ignored", event_id)
