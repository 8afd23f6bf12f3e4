"""Pytest configuration and fixtures for the AI Bootcamp backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Service instances wired to the mocked tables
- Sample events, registrations and Stripe webhook payloads
"""

import hashlib
import hmac
import json
import os
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-bootcamp")
os.environ.setdefault("APP_BASE_URL", "https://bootcamp.test")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret_for_testing")
os.environ.setdefault("INTERNAL_API_TOKEN", "test-internal-token")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from bootcamp.config import Settings  # noqa: E402
from bootcamp.services.dynamodb import DynamoDBService  # noqa: E402
from bootcamp.services.event_store import EventStore  # noqa: E402
from bootcamp.services.notification_service import NotificationService  # noqa: E402
from bootcamp.services.registration_store import RegistrationStore  # noqa: E402
from bootcamp.services.webhook_handler import WebhookHandler  # noqa: E402

TABLE_PREFIX = "test-bootcamp"
TEST_WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]
TEST_INTERNAL_TOKEN = os.environ["INTERNAL_API_TOKEN"]
TEST_EVENT_ID = "1"
TEST_REGISTRATION_ID = "42"
TEST_SESSION_ID = "cs_abc"
TEST_PAYMENT_INTENT_ID = "pi_123"


def _gsi(attribute: str) -> dict[str, Any]:
    return {
        "IndexName": f"{attribute}-index",
        "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
        "Projection": {"ProjectionType": "ALL"},
    }


TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "registrations",
        "key": "registration_id",
        "indexes": [
            "checkout_session_id",
            "payment_intent_id",
            "email",
            "auth_user_id",
            "event_id",
        ],
    },
    {"name": "checkout-sessions", "key": "checkout_session_id", "indexes": []},
    {"name": "events", "key": "event_id", "indexes": []},
    {"name": "users", "key": "user_id", "indexes": ["email"]},
    {"name": "stripe-webhook-events", "key": "event_id", "indexes": []},
    {"name": "email-logs", "key": "log_id", "indexes": ["registration_id"]},
]


def create_bootcamp_tables(client: Any, prefix: str = TABLE_PREFIX) -> None:
    """Create every table the backend uses."""
    for definition in TABLE_DEFINITIONS:
        attributes = [definition["key"], *definition["indexes"]]
        kwargs: dict[str, Any] = {
            "TableName": f"{prefix}-{definition['name']}",
            "KeySchema": [{"AttributeName": definition["key"], "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": name, "AttributeType": "S"} for name in attributes
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }
        if definition["indexes"]:
            kwargs["GlobalSecondaryIndexes"] = [_gsi(name) for name in definition["indexes"]]
        client.create_table(**kwargs)


# === Singleton reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Services created inside a mock_aws context must not leak into the next
    test.
    """
    from bootcamp_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === AWS Fixtures ===


@pytest.fixture
def aws() -> Generator[None, None, None]:
    """Activate moto for DynamoDB and SSM."""
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_client(aws: None) -> Any:
    return boto3.client("dynamodb", region_name=os.environ["AWS_DEFAULT_REGION"])


@pytest.fixture
def dynamodb_resource(aws: None) -> Any:
    return boto3.resource("dynamodb", region_name=os.environ["AWS_DEFAULT_REGION"])


@pytest.fixture
def tables(dynamodb_client: Any) -> None:
    """Create all tables in the mocked account."""
    create_bootcamp_tables(dynamodb_client)


# === Service Fixtures ===


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        table_prefix=TABLE_PREFIX,
        app_base_url="https://bootcamp.test",
        fallback_event_id=TEST_EVENT_ID,
    )


@pytest.fixture
def db(tables: None, settings: Settings) -> DynamoDBService:
    return DynamoDBService(settings)


@pytest.fixture
def store(db: DynamoDBService) -> RegistrationStore:
    return RegistrationStore(db)


@pytest.fixture
def event_store(db: DynamoDBService) -> EventStore:
    return EventStore(db)


@pytest.fixture
def ses_client() -> MagicMock:
    """SES client double returning a fixed message ID."""
    client = MagicMock()
    client.send_email.return_value = {"MessageId": "msg-0001"}
    return client


@pytest.fixture
def notification_service(
    store: RegistrationStore,
    db: DynamoDBService,
    settings: Settings,
    ses_client: MagicMock,
) -> NotificationService:
    return NotificationService(store, db, settings, ses_client=ses_client)


@pytest.fixture
def webhook_handler(
    store: RegistrationStore,
    event_store: EventStore,
    notification_service: NotificationService,
    db: DynamoDBService,
    settings: Settings,
) -> WebhookHandler:
    return WebhookHandler(store, event_store, notification_service, db, settings)


# === Sample Data Fixtures ===


@pytest.fixture
def sample_event(dynamodb_resource: Any, tables: None) -> dict[str, Any]:
    """The event priced at 199 used throughout the payment tests."""
    item = {
        "event_id": TEST_EVENT_ID,
        "name": "AI Bootcamp: Foundations",
        "price": Decimal("199"),
        "start_date": "2026-11-14T17:00:00+00:00",
        "meeting_link": "https://zoom.us/j/123456789",
        "meeting_type": "zoom",
        "instructor_name": "Dr. Rivera",
    }
    dynamodb_resource.Table(f"{TABLE_PREFIX}-events").put_item(Item=item)
    return item


@pytest.fixture
def pending_registration(dynamodb_resource: Any, tables: None) -> dict[str, Any]:
    """Registration 42 awaiting payment with checkout session cs_abc."""
    now = datetime.now(timezone.utc).isoformat()
    item = {
        "registration_id": TEST_REGISTRATION_ID,
        "event_id": TEST_EVENT_ID,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "checkout_session_id": TEST_SESSION_ID,
        "payment_status": "pending",
        "email_sent": False,
        "created_at": now,
        "updated_at": now,
    }
    dynamodb_resource.Table(f"{TABLE_PREFIX}-registrations").put_item(Item=item)
    dynamodb_resource.Table(f"{TABLE_PREFIX}-checkout-sessions").put_item(
        Item={
            "checkout_session_id": TEST_SESSION_ID,
            "registration_id": TEST_REGISTRATION_ID,
            "claimed_at": now,
        }
    )
    return item


@pytest.fixture
def registered_user(dynamodb_resource: Any, tables: None) -> dict[str, Any]:
    item = {"user_id": "user-789", "auth_user_id": "auth-789", "email": "grace@example.com"}
    dynamodb_resource.Table(f"{TABLE_PREFIX}-users").put_item(Item=item)
    return item


# === Stripe payload helpers ===


def make_stripe_signature(payload: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
    """Create a valid Stripe webhook signature.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    timestamp = str(int(time.time()))
    signed_payload = f"{timestamp}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_completed_event(
    event_id: str = "evt_checkout_1",
    *,
    session_id: str = TEST_SESSION_ID,
    client_reference_id: str | None = TEST_REGISTRATION_ID,
    metadata: dict[str, str] | None = None,
    amount_total: int = 19900,
    payment_intent: str | None = TEST_PAYMENT_INTENT_ID,
    payment_status: str = "paid",
    customer_email: str | None = None,
    customer_name: str | None = None,
) -> dict[str, Any]:
    """Build a checkout.session.completed event."""
    session: dict[str, Any] = {
        "id": session_id,
        "object": "checkout.session",
        "client_reference_id": client_reference_id,
        "payment_intent": payment_intent,
        "payment_status": payment_status,
        "amount_total": amount_total,
        "currency": "usd",
        "metadata": metadata if metadata is not None else {},
        "customer_email": customer_email,
        "customer_details": (
            {"email": customer_email, "name": customer_name} if customer_email else None
        ),
    }
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "created": int(time.time()),
        "data": {"object": session},
    }


def payment_intent_event(
    event_type: str,
    event_id: str = "evt_pi_1",
    *,
    registration_id: str | None = TEST_REGISTRATION_ID,
    payment_intent_id: str = TEST_PAYMENT_INTENT_ID,
    amount: int = 19900,
    amount_received: int | None = None,
    error_message: str | None = None,
) -> dict[str, Any]:
    """Build a payment_intent.* event."""
    intent: dict[str, Any] = {
        "id": payment_intent_id,
        "object": "payment_intent",
        "amount": amount,
        "amount_received": amount_received,
        "metadata": {"registrationId": registration_id} if registration_id else {},
    }
    if error_message is not None:
        intent["last_payment_error"] = {"message": error_message}
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": intent},
    }


def encode_event(event: dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


@pytest.fixture
def stripe_payloads() -> Any:
    """Namespace of Stripe payload helpers for test modules."""

    class _Payloads:
        sign: Callable[..., str] = staticmethod(make_stripe_signature)
        checkout_completed: Callable[..., dict[str, Any]] = staticmethod(
            checkout_completed_event
        )
        payment_intent: Callable[..., dict[str, Any]] = staticmethod(payment_intent_event)
        encode: Callable[[dict[str, Any]], bytes] = staticmethod(encode_event)

    return _Payloads


# === API Fixtures ===


@pytest.fixture
def stripe_client() -> MagicMock:
    """StripeClient double with a canned checkout session."""
    client = MagicMock()
    session = MagicMock()
    session.id = "cs_new"
    session.url = "https://checkout.stripe.com/c/pay/cs_new"
    client.checkout.sessions.create.return_value = session
    return client


@pytest.fixture
def api_client(
    settings: Settings,
    db: DynamoDBService,
    store: RegistrationStore,
    event_store: EventStore,
    notification_service: NotificationService,
    webhook_handler: WebhookHandler,
    stripe_client: MagicMock,
) -> Generator[Any, None, None]:
    """TestClient with every service provider bound to the mocked tables."""
    from fastapi.testclient import TestClient

    from bootcamp.services.checkout_service import CheckoutService
    from bootcamp.services.registration_service import RegistrationService
    from bootcamp.services.stripe_service import StripeService
    from bootcamp_api import dependencies
    from bootcamp_api.main import app

    stripe_service = StripeService(
        settings, client=stripe_client, webhook_secret=TEST_WEBHOOK_SECRET
    )
    registration_service = RegistrationService(store, event_store, db)
    checkout_service = CheckoutService(store, event_store, stripe_service, settings)

    app.dependency_overrides = {
        dependencies.get_app_settings: lambda: settings,
        dependencies.get_stripe: lambda: stripe_service,
        dependencies.get_registration_store: lambda: store,
        dependencies.get_event_store: lambda: event_store,
        dependencies.get_registration_service: lambda: registration_service,
        dependencies.get_checkout_service: lambda: checkout_service,
        dependencies.get_notification_service: lambda: notification_service,
        dependencies.get_webhook_handler: lambda: webhook_handler,
    }
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides = {}
