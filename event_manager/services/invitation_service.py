import logging

from event_manager.schemas import InvitationResponse

logger = logging.getLogger(__name__)


async def send_invitation(attendee_id: int, message: str | None = None) -> InvitationResponse:
    """Placeholder: nothing is delivered, the call always reports success."""
    text = f"Invitation would be sent to attendee {attendee_id}"
    if message:
        text += f" with message: {message}"
    logger.info("Invitation stub called for attendee %s", attendee_id)
    return InvitationResponse(success=True, message=text)
