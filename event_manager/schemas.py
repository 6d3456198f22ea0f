from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
import pytz

from event_manager.config import DEFAULT_TIMEZONE
from event_manager.models import RegistrationStatus


def localize_naive(v):
    if isinstance(v, str):
        v = datetime.fromisoformat(v)
    if isinstance(v, datetime) and v.tzinfo is None:
        # Clients should send offsets; naive values are read in the configured zone
        return pytz.timezone(DEFAULT_TIMEZONE).localize(v)
    return v


def reject_null(v, field_name):
    if v is None:
        raise ValueError(f"{field_name} may not be null")
    return v


# ---------- Event ----------
class EventFields(BaseModel):
    title: str
    description: Optional[str] = None
    location: str
    start_date: datetime
    end_date: datetime
    max_capacity: int


class EventCreate(EventFields):
    title: str = Field(min_length=1)
    location: str = Field(min_length=1)
    max_capacity: int = Field(gt=0)

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def ensure_timezone_awareness(cls, v):
        return localize_naive(v)

    @model_validator(mode='after')
    def end_date_must_be_after_start_date(self):
        if self.end_date <= self.start_date:
            raise ValueError('End date must be after start date')
        return self


class EventUpdate(BaseModel):
    """Partial update; only the fields present in the request body are applied."""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_capacity: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def ensure_timezone_awareness(cls, v):
        if v is None:
            return v
        return localize_naive(v)

    @field_validator('title', 'location', 'start_date', 'end_date', 'max_capacity', 'is_active')
    @classmethod
    def not_nullable(cls, v, info):
        return reject_null(v, info.field_name)


class EventResponse(EventFields):
    id: int
    current_bookings: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('start_date', 'end_date', 'created_at', 'updated_at')
    @classmethod
    def naive_means_utc(cls, v):
        if v.tzinfo is None:
            return pytz.utc.localize(v)
        return v


# ---------- Attendee ----------
class AttendeeBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr


class AttendeeCreate(AttendeeBase):
    registration_status: RegistrationStatus = RegistrationStatus.PENDING


class AttendeeRegistration(AttendeeCreate):
    event_id: int


class AttendeeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    registration_status: Optional[RegistrationStatus] = None

    @field_validator('name', 'email', 'registration_status')
    @classmethod
    def not_nullable(cls, v, info):
        return reject_null(v, info.field_name)


class AttendeeResponse(BaseModel):
    id: int
    event_id: int
    name: str
    email: str
    registration_status: RegistrationStatus
    registered_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginatedAttendeesResponse(BaseModel):
    total: int
    page: int
    size: int
    pages: int
    items: List[AttendeeResponse]


# ---------- Speaker ----------
class SpeakerCreate(BaseModel):
    name: str = Field(min_length=1)
    bio: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None
    expertise: Optional[str] = None


class SpeakerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    expertise: Optional[str] = None

    @field_validator('name', 'email')
    @classmethod
    def not_nullable(cls, v, info):
        return reject_null(v, info.field_name)


class SpeakerResponse(BaseModel):
    id: int
    name: str
    bio: Optional[str]
    email: str
    phone: Optional[str]
    expertise: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventSpeakerResponse(BaseModel):
    id: int
    event_id: int
    speaker_id: int
    assigned_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Misc ----------
class InvitationRequest(BaseModel):
    message: Optional[str] = None


class InvitationResponse(BaseModel):
    success: bool
    message: str


class DeleteResponse(BaseModel):
    success: bool
