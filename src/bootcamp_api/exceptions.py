"""FastAPI exception handlers for converting domain errors to HTTP responses.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Validation/business rule violations
- 401 Unauthorized: Missing or invalid internal token
- 402 Payment Required: Checkout session not paid
- 404 Not Found: Resource not found
- 409 Conflict: Registration already paid or status change rejected
- 502 Bad Gateway: Stripe API failures

Usage:
    from bootcamp_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from bootcamp.models.errors import BootcampError, ErrorCode, ErrorResponse
from bootcamp.services.stripe_service import StripeServiceError
from bootcamp.utils.logging import get_logger

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_AMOUNT: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: HTTP_401_UNAUTHORIZED,
    ErrorCode.CHECKOUT_SESSION_NOT_PAID: HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.REGISTRATION_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.EVENT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_ALREADY_PAID: HTTP_409_CONFLICT,
    ErrorCode.INVALID_PAYMENT_TRANSITION: HTTP_409_CONFLICT,
    ErrorCode.STRIPE_API_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.EMAIL_DELIVERY_FAILED: HTTP_502_BAD_GATEWAY,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def bootcamp_error_handler(request: Request, exc: BootcampError) -> JSONResponse:
    """Convert a BootcampError to a JSON ErrorResponse."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def stripe_error_handler(request: Request, exc: StripeServiceError) -> JSONResponse:
    """Convert a Stripe failure to a 502 ErrorResponse."""
    logger.error("Stripe error on %s: %s", request.url.path, exc)
    details = {"stripe_error_code": exc.stripe_error_code} if exc.stripe_error_code else None
    body = ErrorResponse.from_code(ErrorCode.STRIPE_API_ERROR, details)
    return JSONResponse(
        status_code=HTTP_502_BAD_GATEWAY,
        content=body.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    logger.exception("Unhandled exception: %s", exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BootcampError, bootcamp_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StripeServiceError, stripe_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
