"""Standard error codes for the registration and payment backend.

Every domain failure is expressed as an ErrorCode so the API can map it to a
stable HTTP status and a consistent JSON body.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Registration error codes (ERR_001-ERR_006)
    REGISTRATION_NOT_FOUND = "ERR_001"
    EVENT_NOT_FOUND = "ERR_002"
    INVALID_PAYMENT_TRANSITION = "ERR_003"
    REGISTRATION_ALREADY_PAID = "ERR_004"
    UNAUTHORIZED = "ERR_005"
    INVALID_AMOUNT = "ERR_006"

    # Notification error codes
    EMAIL_DELIVERY_FAILED = "ERR_EMAIL_001"

    # Stripe/Payment error codes (ERR_STRIPE_001-ERR_STRIPE_003)
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    STRIPE_API_ERROR = "ERR_STRIPE_002"
    CHECKOUT_SESSION_NOT_PAID = "ERR_STRIPE_003"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.REGISTRATION_NOT_FOUND: "Registration not found",
    ErrorCode.EVENT_NOT_FOUND: "Event not found",
    ErrorCode.INVALID_PAYMENT_TRANSITION: "Payment status change is not allowed",
    ErrorCode.REGISTRATION_ALREADY_PAID: "Registration is already paid",
    ErrorCode.UNAUTHORIZED: "Not authorized to perform this action",
    ErrorCode.INVALID_AMOUNT: "Payment amount must be greater than zero",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Failed to send email",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.STRIPE_API_ERROR: "Stripe API error occurred",
    ErrorCode.CHECKOUT_SESSION_NOT_PAID: "Payment was not successful",
}

# Recovery suggestions returned alongside the message
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.REGISTRATION_NOT_FOUND: "Verify the registration ID or register again",
    ErrorCode.EVENT_NOT_FOUND: "Verify the event ID",
    ErrorCode.INVALID_PAYMENT_TRANSITION: "No action needed; the registration keeps its current status",
    ErrorCode.REGISTRATION_ALREADY_PAID: "No payment needed; check your confirmation email",
    ErrorCode.UNAUTHORIZED: "Provide a valid authorization token",
    ErrorCode.INVALID_AMOUNT: "Check the event price and try again",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Verify the email address and try again",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.STRIPE_API_ERROR: "Try again or contact support",
    ErrorCode.CHECKOUT_SESSION_NOT_PAID: "Try the payment again or use a different card",
}


class ErrorResponse(BaseModel):
    """Standard error body returned by the API."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BootcampError(Exception):
    """Exception raised by registration and payment operations.

    Converted to an ErrorResponse by the API exception handlers.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


# Stripe decline code to user-friendly message mapping
STRIPE_ERROR_MESSAGES: dict[str, str] = {
    "card_declined": "Your card was declined. Please try a different card.",
    "expired_card": "Your card has expired. Please use a different card.",
    "insufficient_funds": "Your card has insufficient funds. Please try a different card.",
    "incorrect_cvc": "The security code (CVC) is incorrect. Please check and try again.",
    "incorrect_number": "The card number is incorrect. Please check and try again.",
    "processing_error": "A processing error occurred. Please try again.",
    "authentication_required": "Your bank requires additional authentication. Please try again.",
    "generic_decline": "Your card was declined. Please try a different card.",
}

DEFAULT_PAYMENT_ERROR_MESSAGE = "Payment could not be completed. Please try again."


def get_user_friendly_stripe_message(
    stripe_error: Optional[str],
    default_message: str = DEFAULT_PAYMENT_ERROR_MESSAGE,
) -> str:
    """Get a user-friendly message for a stored Stripe failure.

    Stripe reports either a decline code (``card_declined``) or a sentence
    (``Your card was declined.``); only known codes are translated.

    Args:
        stripe_error: The stored Stripe error code or message.
        default_message: Message to use if the error is unknown.

    Returns:
        User-friendly error message.
    """
    if stripe_error and stripe_error in STRIPE_ERROR_MESSAGES:
        return STRIPE_ERROR_MESSAGES[stripe_error]
    return default_message
