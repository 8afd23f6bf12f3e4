"""FastAPI dependency injection providers for shared services.

Services are created lazily once per process with @lru_cache.

Usage in routes:
    from bootcamp_api.dependencies import get_checkout_service

    @router.post("/checkout-sessions")
    async def create_checkout_session(
        checkout: CheckoutService = Depends(get_checkout_service),
    ):
        ...

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── RegistrationStore
        │       ├── RegistrationService (+ EventStore)
        │       ├── CheckoutService (+ EventStore, StripeService)
        │       └── NotificationService
        │               └── WebhookHandler (+ EventStore)
        └── EventStore

Testing:
    Override providers through app.dependency_overrides, or call
    reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from bootcamp.config import Settings, get_settings
from bootcamp.services.checkout_service import CheckoutService
from bootcamp.services.dynamodb import get_dynamodb_service
from bootcamp.services.event_store import EventStore
from bootcamp.services.notification_service import NotificationService
from bootcamp.services.registration_service import RegistrationService
from bootcamp.services.registration_store import RegistrationStore
from bootcamp.services.ssm_service import SSMService, get_ssm_service
from bootcamp.services.stripe_service import StripeService, get_stripe_service
from bootcamp.services.webhook_handler import WebhookHandler


def get_app_settings() -> Settings:
    return get_settings()


def get_ssm() -> SSMService:
    return get_ssm_service()


def get_stripe() -> StripeService:
    return get_stripe_service()


@lru_cache
def get_registration_store() -> RegistrationStore:
    """Get cached RegistrationStore instance."""
    return RegistrationStore(db=get_dynamodb_service())


@lru_cache
def get_event_store() -> EventStore:
    """Get cached EventStore instance."""
    return EventStore(db=get_dynamodb_service())


@lru_cache
def get_registration_service() -> RegistrationService:
    """Get cached RegistrationService instance."""
    return RegistrationService(
        store=get_registration_store(),
        events=get_event_store(),
        db=get_dynamodb_service(),
    )


@lru_cache
def get_checkout_service() -> CheckoutService:
    """Get cached CheckoutService instance."""
    return CheckoutService(
        store=get_registration_store(),
        events=get_event_store(),
        stripe_service=get_stripe_service(),
        settings=get_settings(),
    )


@lru_cache
def get_notification_service() -> NotificationService:
    """Get cached NotificationService instance."""
    return NotificationService(
        store=get_registration_store(),
        db=get_dynamodb_service(),
        settings=get_settings(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler instance."""
    return WebhookHandler(
        store=get_registration_store(),
        events=get_event_store(),
        notifications=get_notification_service(),
        db=get_dynamodb_service(),
        settings=get_settings(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call between tests so that services are rebuilt inside a fresh
    mock_aws context.
    """
    from bootcamp.services.dynamodb import reset_dynamodb_service

    get_registration_store.cache_clear()
    get_event_store.cache_clear()
    get_registration_service.cache_clear()
    get_checkout_service.cache_clear()
    get_notification_service.cache_clear()
    get_webhook_handler.cache_clear()
    get_stripe_service.cache_clear()
    get_ssm_service.cache_clear()
    get_settings.cache_clear()
    reset_dynamodb_service()
