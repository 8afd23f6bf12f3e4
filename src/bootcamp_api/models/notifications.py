"""API models for notification endpoints."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel, IdStr


class RegistrationConfirmationRequest(CamelModel):
    """Request to send a registration confirmation email."""

    registration_id: IdStr = Field(..., alias="registrationId", min_length=1)
    event_id: IdStr = Field(..., alias="eventId", min_length=1)
    event_title: str = Field(..., alias="eventTitle", min_length=1)
    event_date: datetime | None = Field(..., alias="eventDate")
    name: str
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    meeting_link: str | None = Field(default=None, alias="meetingLink")
    meeting_type: str | None = Field(default=None, alias="meetingType")


class PaymentReminderRequest(CamelModel):
    """Request to remind an attendee to pay for a pending registration."""

    registration_id: IdStr = Field(..., alias="registrationId", min_length=1)


class NotificationResponse(CamelModel):
    """Outcome of a send request."""

    success: bool
    message: str
    error: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")
