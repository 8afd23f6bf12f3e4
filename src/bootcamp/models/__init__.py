"""Pydantic models for AI Bootcamp registration and payment entities."""

from .enums import EmailType, MeetingType, PaymentStatus
from .errors import (
    BootcampError,
    ErrorCode,
    ErrorResponse,
    get_user_friendly_stripe_message,
)
from .event import Event
from .notification import (
    EmailLog,
    NotificationResult,
    PaymentReminderData,
    RegistrationEmailData,
)
from .payment_state import (
    ALLOWED_TRANSITIONS,
    InvalidPaymentTransition,
    allowed_sources,
    can_transition,
    transition,
)
from .registration import PaymentUpdate, Registration, RegistrationCreate
from .stripe_webhook import StripeWebhookEvent, WebhookOutcome

__all__ = [
    # Enums
    "EmailType",
    "MeetingType",
    "PaymentStatus",
    # Errors
    "BootcampError",
    "ErrorCode",
    "ErrorResponse",
    "get_user_friendly_stripe_message",
    # Event
    "Event",
    # Notification
    "EmailLog",
    "NotificationResult",
    "PaymentReminderData",
    "RegistrationEmailData",
    # Payment state
    "ALLOWED_TRANSITIONS",
    "InvalidPaymentTransition",
    "allowed_sources",
    "can_transition",
    "transition",
    # Registration
    "PaymentUpdate",
    "Registration",
    "RegistrationCreate",
    # Stripe webhook
    "StripeWebhookEvent",
    "WebhookOutcome",
]
