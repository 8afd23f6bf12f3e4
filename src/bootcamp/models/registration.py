"""Registration model for event sign-ups and their payment state."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import PaymentStatus


class Registration(BaseModel):
    """A registration of a person for a bootcamp event.

    A registration is created pending before checkout, or directly as paid
    when a completed checkout session arrives without a correlated row.
    """

    model_config = ConfigDict(strict=True)

    registration_id: str = Field(..., description="Unique registration ID")
    event_id: str = Field(..., description="Reference to Event")
    name: str = Field(..., description="Attendee name")
    email: str = Field(..., description="Attendee email (lowercase)")
    auth_user_id: str | None = Field(
        default=None, description="Linked authenticated account ID"
    )
    checkout_session_id: str | None = Field(
        default=None,
        description="Stripe Checkout Session ID (cs_xxx)",
        examples=["cs_test_abc123def456"],
    )
    payment_intent_id: str | None = Field(
        default=None,
        description="Stripe PaymentIntent ID (pi_xxx)",
        examples=["pi_3ABC123DEF456"],
    )
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    payment_error: str | None = Field(
        default=None, description="Provider failure message"
    )
    amount_paid: Decimal | None = Field(
        default=None, ge=0, description="Amount paid in major currency units"
    )
    email_sent: bool = Field(
        default=False, description="Whether the confirmation email was sent"
    )
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _paid_requires_payment_fields(self) -> "Registration":
        if self.payment_status == PaymentStatus.PAID and (
            self.payment_intent_id is None or self.amount_paid is None
        ):
            raise ValueError("paid registrations need payment_intent_id and amount_paid")
        return self


class RegistrationCreate(BaseModel):
    """Data required to create a registration."""

    model_config = ConfigDict(strict=True)

    event_id: str
    name: str
    email: str
    auth_user_id: str | None = None


class PaymentUpdate(BaseModel):
    """Payment fields written by webhook reconciliation.

    Fields left as None are not touched on the stored registration.
    """

    model_config = ConfigDict(strict=True)

    payment_status: PaymentStatus
    checkout_session_id: str | None = None
    payment_intent_id: str | None = None
    amount_paid: Decimal | None = Field(default=None, ge=0)
    payment_error: str | None = None

    @model_validator(mode="after")
    def _paid_requires_payment_fields(self) -> "PaymentUpdate":
        if self.payment_status == PaymentStatus.PAID and (
            self.payment_intent_id is None or self.amount_paid is None
        ):
            raise ValueError("paid updates need payment_intent_id and amount_paid")
        return self
