"""API models for checkout session endpoints."""

from decimal import Decimal

from pydantic import Field

from .common import CamelModel, IdStr
from .registrations import RegistrationResponse


class CheckoutSessionRequest(CamelModel):
    """Request to start a hosted checkout for a registration."""

    event_id: IdStr = Field(..., alias="eventId", min_length=1)
    registration_id: IdStr = Field(..., alias="registrationId", min_length=1)
    amount: Decimal = Field(..., description="Price in major currency units")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    user_id: str | None = Field(default=None, alias="userId")


class CheckoutSessionResponse(CamelModel):
    """Redirect target for the hosted checkout page."""

    url: str
    session_id: str = Field(..., alias="sessionId")


class CheckoutConfirmationResponse(CamelModel):
    """Result of reconciling a checkout session from the success page."""

    session_id: str = Field(..., alias="sessionId")
    registration: RegistrationResponse
