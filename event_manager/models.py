from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from event_manager.database import Base
import datetime
import enum
import pytz


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(pytz.utc)


def as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    max_capacity = Column(Integer, nullable=False)
    current_bookings = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    attendees = relationship("Attendee", back_populates="event")
    speaker_links = relationship("EventSpeaker", back_populates="event")

    def to_dict(self, timezone_str: str = "UTC"):
        target_tz = pytz.timezone(timezone_str)
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "start_date": as_utc(self.start_date).astimezone(target_tz),
            "end_date": as_utc(self.end_date).astimezone(target_tz),
            "max_capacity": self.max_capacity,
            "current_bookings": self.current_bookings,
            "is_active": self.is_active,
            "created_at": as_utc(self.created_at).astimezone(target_tz),
            "updated_at": as_utc(self.updated_at).astimezone(target_tz),
        }


class Attendee(Base):
    __tablename__ = "attendees"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    registration_status = Column(
        Enum(
            RegistrationStatus,
            name="registration_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=RegistrationStatus.PENDING,
    )
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="attendees")


class Speaker(Base):
    __tablename__ = "speakers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    expertise = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event_links = relationship("EventSpeaker", back_populates="speaker")


class EventSpeaker(Base):
    __tablename__ = "event_speakers"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    speaker_id = Column(Integer, ForeignKey("speakers.id", ondelete="CASCADE"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="speaker_links")
    speaker = relationship("Speaker", back_populates="event_links")

    __table_args__ = (UniqueConstraint('event_id', 'speaker_id', name='_event_speaker_uc'),)
