"""Models for outgoing email notifications and their audit log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import EmailType, MeetingType


class RegistrationEmailData(BaseModel):
    """Everything needed to render a registration confirmation."""

    model_config = ConfigDict(strict=True)

    registration_id: str
    event_id: str
    event_title: str
    event_date: datetime | None = None
    name: str
    email: str
    meeting_link: str | None = None
    meeting_type: MeetingType | None = None


class PaymentReminderData(BaseModel):
    """Everything needed to render a payment reminder."""

    model_config = ConfigDict(strict=True)

    registration_id: str
    event_id: str
    event_title: str
    event_date: datetime | None = None
    name: str
    email: str
    instructor_name: str | None = None


class NotificationResult(BaseModel):
    """Outcome of a send operation. Provider failures are reported here, not raised."""

    success: bool
    message: str
    error: str | None = None
    message_id: str | None = None


class EmailLog(BaseModel):
    """Audit record of a sent email."""

    model_config = ConfigDict(strict=True)

    log_id: str = Field(..., description="Unique log ID")
    email_type: EmailType
    recipient_email: str
    recipient_name: str
    related_event_id: str
    related_registration_id: str
    event_title: str
    event_date: str | None = None
    sent_at: datetime
    message_id: str | None = Field(
        default=None, description="Provider message ID returned by SES"
    )
