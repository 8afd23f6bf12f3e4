"""Stripe webhook event model for idempotency and auditing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    Used for:
    - Idempotency: redeliveries of a logged event are not processed again
    - Auditing: track all webhook deliveries
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["checkout.session.completed", "payment_intent.payment_failed"],
    )
    processed_at: datetime
    payload_hash: str = Field(
        ...,
        description="SHA-256 hash of payload",
    )
    registration_id: str | None = Field(
        default=None,
        description="Registration the event was applied to",
    )
    processing_result: str = Field(
        default="success",
        description="success, duplicate, skipped, not_found, ignored or error",
    )
    error_message: str | None = None


class WebhookOutcome(BaseModel):
    """Result of dispatching one webhook event."""

    result: str
    registration_id: str | None = None
    message: str | None = None
