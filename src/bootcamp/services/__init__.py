"""Backend services for AI Bootcamp registrations and payments."""

from .checkout_service import CheckoutService
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .event_store import EventStore
from .notification_service import NotificationService
from .registration_service import RegistrationService
from .registration_store import RegistrationStore, RegistrationStoreError
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import (
    StripeService,
    StripeServiceError,
    WebhookSignatureError,
    get_stripe_service,
)
from .webhook_handler import WebhookHandler

__all__ = [
    "CheckoutService",
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "EventStore",
    "NotificationService",
    "RegistrationService",
    "RegistrationStore",
    "RegistrationStoreError",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
    "WebhookSignatureError",
    "get_stripe_service",
    "WebhookHandler",
]
