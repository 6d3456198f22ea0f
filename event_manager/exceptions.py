"""Domain errors raised by the services and translated to HTTP responses in main.py."""
from fastapi import status


class DomainError(Exception):
    """Base domain error carrying a user-facing message and an HTTP status code."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"

    @classmethod
    def for_entity(cls, entity: str) -> "NotFound":
        return cls(f"{entity} not found")


class EventInactive(DomainError):
    default_message = "Cannot register for an inactive event"


class EventFull(DomainError):
    default_message = "Event is at full capacity"


class EventAlreadyStarted(DomainError):
    default_message = "Cannot register for an event that has already started"


class InvalidDateRange(DomainError):
    default_message = "End date must be after start date"


class DuplicateAssignment(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Speaker is already assigned to this event"


class ConcurrentModification(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The record was changed by another request, please retry"
