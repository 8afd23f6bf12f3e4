"""API models for registration endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from bootcamp.models import PaymentStatus, Registration, get_user_friendly_stripe_message

from .common import CamelModel, IdStr


class RegistrationRequest(CamelModel):
    """Request to register for an event before checkout."""

    event_id: IdStr = Field(..., alias="eventId", min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    user_id: str | None = Field(default=None, alias="userId")


class RegistrationResponse(CamelModel):
    """Registration as shown to the attendee."""

    registration_id: str = Field(..., alias="registrationId")
    event_id: str = Field(..., alias="eventId")
    name: str
    email: str
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")
    payment_error: str | None = Field(default=None, alias="paymentError")
    amount_paid: Decimal | None = Field(default=None, alias="amountPaid")
    email_sent: bool = Field(..., alias="emailSent")
    checkout_session_id: str | None = Field(default=None, alias="checkoutSessionId")
    paid_at: datetime | None = Field(default=None, alias="paidAt")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_registration(cls, registration: Registration) -> "RegistrationResponse":
        payment_error = None
        if registration.payment_status == PaymentStatus.FAILED:
            payment_error = get_user_friendly_stripe_message(registration.payment_error)
        return cls(
            registration_id=registration.registration_id,
            event_id=registration.event_id,
            name=registration.name,
            email=registration.email,
            payment_status=registration.payment_status,
            payment_error=payment_error,
            amount_paid=registration.amount_paid,
            email_sent=registration.email_sent,
            checkout_session_id=registration.checkout_session_id,
            paid_at=registration.paid_at,
            created_at=registration.created_at,
        )


class RegistrationCreatedResponse(CamelModel):
    """Result of a registration request."""

    created: bool
    registration: RegistrationResponse


class RegistrationListResponse(CamelModel):
    """Registrations of the signed-in account."""

    registrations: list[RegistrationResponse]
