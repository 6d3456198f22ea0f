"""Booking accounting rules.

Pure decision logic shared by the attendee and event services:

- ``check_admission`` decides whether a new registration may be created
  for an event, raising the first failing rule as a typed error.
- ``status_change_delta`` maps a registration status transition to the
  adjustment applied to the event's ``current_bookings`` counter.

Nothing here touches the database. The services apply the deltas through
single conditional UPDATE statements so the counter is never written from a
value read earlier in Python.
"""
from datetime import datetime

from event_manager.exceptions import EventAlreadyStarted, EventFull, EventInactive, NotFound
from event_manager.models import Event, RegistrationStatus, as_utc, utcnow

# Capacity is consumed when an attendee is admitted, whatever status they
# are registered with, and released when the attendee row is deleted.
ADMISSION_DELTA = 1
REMOVAL_DELTA = -1


def check_admission(event: Event | None, now: datetime | None = None) -> None:
    """
    Raise the first admission rule the event fails, in order:
    missing, inactive, full, already started.
    """
    if event is None:
        raise NotFound.for_entity("Event")
    if not event.is_active:
        raise EventInactive()
    if event.current_bookings >= event.max_capacity:
        raise EventFull()
    now = as_utc(now) if now is not None else utcnow()
    if as_utc(event.start_date) <= now:
        raise EventAlreadyStarted()


def status_change_delta(old_status: RegistrationStatus, new_status: RegistrationStatus) -> int:
    old_status = RegistrationStatus(old_status)
    new_status = RegistrationStatus(new_status)
    if old_status == new_status:
        return 0
    if new_status is RegistrationStatus.CONFIRMED:
        return 1
    if old_status is RegistrationStatus.CONFIRMED:
        return -1
    return 0
