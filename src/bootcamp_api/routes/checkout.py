"""Checkout session endpoints.

Provides REST endpoints for:
- Creating a hosted Stripe Checkout session for a registration
- Confirming a checkout session from the payment success page
"""

from fastapi import APIRouter, Depends

from bootcamp.services.checkout_service import CheckoutService
from bootcamp.services.webhook_handler import WebhookHandler
from bootcamp_api.dependencies import get_checkout_service, get_webhook_handler
from bootcamp_api.models.checkout import (
    CheckoutConfirmationResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
)
from bootcamp_api.models.common import ErrorResponse
from bootcamp_api.models.registrations import RegistrationResponse

router = APIRouter(tags=["checkout"])


@router.post(
    "/checkout-sessions",
    summary="Create a Stripe Checkout session",
    description="""
Creates a hosted Stripe Checkout session for a pending registration and
records the session ID on the registration.

The response `url` is the Stripe-hosted payment page to redirect to.
""",
    response_model=CheckoutSessionResponse,
    responses={
        400: {"description": "Invalid amount", "model": ErrorResponse},
        404: {"description": "Registration not found", "model": ErrorResponse},
        409: {"description": "Registration already paid", "model": ErrorResponse},
        502: {"description": "Stripe API error", "model": ErrorResponse},
    },
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionResponse:
    session = checkout.start_checkout(
        event_id=body.event_id,
        registration_id=body.registration_id,
        amount=body.amount,
        email=body.email.strip().lower(),
        user_id=body.user_id,
    )
    return CheckoutSessionResponse(url=session["url"], session_id=session["session_id"])


@router.get(
    "/checkout-sessions/{session_id}/confirmation",
    summary="Confirm a completed checkout session",
    description="""
Called by the payment success page. Reads the session from Stripe and, if it
is paid, reconciles the registration the same way the webhook does. Safe to
call repeatedly and safe to race with the webhook.
""",
    response_model=CheckoutConfirmationResponse,
    responses={
        402: {"description": "Session not paid", "model": ErrorResponse},
        404: {"description": "Registration not found", "model": ErrorResponse},
        502: {"description": "Stripe API error", "model": ErrorResponse},
    },
)
async def confirm_checkout_session(
    session_id: str,
    checkout: CheckoutService = Depends(get_checkout_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> CheckoutConfirmationResponse:
    registration = checkout.confirm_session(session_id, handler)
    return CheckoutConfirmationResponse(
        session_id=session_id,
        registration=RegistrationResponse.from_registration(registration),
    )
