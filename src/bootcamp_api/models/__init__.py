"""API request/response models."""

from .checkout import (
    CheckoutConfirmationResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
)
from .common import CamelModel, ErrorResponse
from .notifications import (
    NotificationResponse,
    PaymentReminderRequest,
    RegistrationConfirmationRequest,
)
from .registrations import (
    RegistrationCreatedResponse,
    RegistrationListResponse,
    RegistrationRequest,
    RegistrationResponse,
)
from .webhooks import WebhookErrorResponse, WebhookResponse

__all__ = [
    "CamelModel",
    "CheckoutConfirmationResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "ErrorResponse",
    "NotificationResponse",
    "PaymentReminderRequest",
    "RegistrationConfirmationRequest",
    "RegistrationCreatedResponse",
    "RegistrationListResponse",
    "RegistrationRequest",
    "RegistrationResponse",
    "WebhookErrorResponse",
    "WebhookResponse",
]
