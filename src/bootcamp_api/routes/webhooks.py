"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe webhook events (checkout.session.completed,
  payment_intent.succeeded, payment_intent.payment_failed)

These endpoints do NOT require authentication as they receive signed
payloads from Stripe.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from bootcamp.models.errors import BootcampError, ErrorCode
from bootcamp.services.stripe_service import (
    StripeService,
    WebhookSignatureError,
)
from bootcamp.services.webhook_handler import WebhookHandler
from bootcamp.utils.logging import get_logger
from bootcamp_api.dependencies import get_stripe, get_webhook_handler
from bootcamp_api.models.common import ErrorResponse
from bootcamp_api.models.webhooks import WebhookErrorResponse, WebhookResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed: Marks the registration paid (or creates it)
  and sends the confirmation email
- payment_intent.succeeded: Marks the registration paid
- payment_intent.payment_failed: Marks the registration failed

Other event types are acknowledged without changes.

**No authentication required** - signature is verified using Stripe webhook secret.

**Idempotent**: Duplicate events (same event_id) return 200 with 'duplicate' result.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event received and processed (or acknowledged)"},
        400: {"description": "Invalid signature or missing header", "model": ErrorResponse},
        500: {"description": "Processing failed; Stripe will retry", "model": WebhookErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse | JSONResponse:
    """Handle incoming Stripe webhook events.

    Verifies the signature before anything else, then delegates to the
    webhook handler.
    """
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        logger.warning("Webhook request missing Stripe-Signature header")
        raise BootcampError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": "Missing Stripe-Signature header"},
        )

    # Raw body is required for signature verification
    payload = await request.body()

    try:
        event = stripe_service.verify_webhook_signature(payload, signature)
    except WebhookSignatureError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise BootcampError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": str(e)},
        ) from e

    event_id = event.get("id")
    event_type = event.get("type")

    try:
        outcome = handler.handle_event(event, StripeService.compute_payload_hash(payload))
    except Exception:
        # Anything after verification is retryable from Stripe's side
        logger.exception("Error handling webhook %s (%s)", event_id, event_type)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=WebhookErrorResponse(error="Error handling webhook").model_dump(),
        )

    return WebhookResponse(
        received=True,
        event_id=event_id,
        event_type=event_type,
        processing_result=outcome.result,
        message=outcome.message,
    )
