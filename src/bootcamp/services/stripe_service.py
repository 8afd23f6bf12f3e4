"""Stripe payment service for checkout sessions and webhook verification.

Uses the StripeClient API. The secret key and the webhook signing secret
come from the environment or SSM Parameter Store.
"""

import hashlib
import json
import logging
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from bootcamp.config import Settings, get_settings

from .ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class WebhookSignatureError(StripeServiceError):
    """Raised when a webhook payload fails signature verification."""


def checkout_idempotency_key(registration_id: str, params: dict[str, Any]) -> str:
    """Idempotency key for a Checkout Session request.

    Derived from the full request so a retry with identical parameters reuses
    the session, while changed parameters (a user who signed in, a new price)
    never collide with an earlier key inside Stripe's 24 hour window.
    """
    digest = hashlib.sha256(
        json.dumps(params, sort_keys=True, separators=(",", ":")).encode()
    ).hexdigest()
    return f"checkout_{registration_id}_{digest[:32]}"


def _as_dict(obj: Any) -> dict[str, Any]:
    """Convert a StripeObject (or plain mapping) to a plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeService:
    """Checkout sessions and webhook verification for bootcamp payments.

    Usage:
        session = get_stripe_service().create_checkout_session(
            registration_id="REG-ABC123DEF456",
            event_id="1",
            amount_cents=19900,
            description="AI Bootcamp",
            customer_email="ada@example.com",
            success_url=f"{base}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/events/1",
        )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        ssm: SSMService | None = None,
        client: StripeClient | None = None,
        webhook_secret: str | None = None,
    ) -> None:
        """Initialize Stripe service.

        Credentials are resolved lazily so that constructing the service
        never touches SSM.

        Args:
            settings: Runtime settings. Defaults to process-wide settings.
            ssm: SSM service used to resolve secrets.
            client: Preconfigured StripeClient (tests).
            webhook_secret: Webhook signing secret (tests).
        """
        self._settings = settings or get_settings()
        self._ssm = ssm
        self._client = client
        self._webhook_secret = webhook_secret

    def _get_ssm(self) -> SSMService:
        if self._ssm is None:
            self._ssm = get_ssm_service()
        return self._ssm

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            try:
                secret_key = self._get_ssm().get_secret(
                    "STRIPE_SECRET_KEY",
                    f"{self._settings.ssm_prefix}/stripe/secret_key",
                )
                self._client = StripeClient(secret_key)
                logger.info(
                    "Stripe client initialized for environment: %s",
                    self._settings.environment,
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e
        return self._client

    def _get_webhook_secret(self) -> str:
        """Get the webhook signing secret.

        Raises:
            StripeServiceError: If secret cannot be retrieved.
        """
        if self._webhook_secret is None:
            try:
                self._webhook_secret = self._get_ssm().get_secret(
                    "STRIPE_WEBHOOK_SECRET",
                    f"{self._settings.ssm_prefix}/stripe/webhook_secret",
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to get webhook secret: {e}") from e
        return self._webhook_secret

    def create_checkout_session(
        self,
        *,
        registration_id: str,
        event_id: str,
        amount_cents: int,
        description: str,
        customer_email: str | None = None,
        user_id: str | None = None,
        success_url: str,
        cancel_url: str,
    ) -> dict[str, Any]:
        """Create a Stripe Checkout session for one registration.

        The registration id is carried as ``client_reference_id`` and in the
        session and PaymentIntent metadata, so every later webhook can be
        correlated back to it.

        Args:
            registration_id: Registration being paid for.
            event_id: Event the registration belongs to.
            amount_cents: Amount in minor currency units.
            description: Line item description.
            customer_email: Optional customer email for Stripe receipt.
            user_id: Authenticated account ID, if any.
            success_url: URL to redirect on success (supports {CHECKOUT_SESSION_ID}).
            cancel_url: URL to redirect on cancel.

        Returns:
            Dict with session details:
                - session_id: Stripe checkout session ID
                - checkout_url: URL to redirect user

        Raises:
            StripeServiceError: If session creation fails.
        """
        client = self._get_client()

        metadata = {
            "registrationId": registration_id,
            "eventId": event_id,
            "userId": user_id or "",
        }

        line_item: dict[str, Any] = {"quantity": 1}
        price_data: dict[str, Any] = {
            "currency": self._settings.stripe_currency,
            "unit_amount": amount_cents,
        }
        if self._settings.stripe_product_id:
            price_data["product"] = self._settings.stripe_product_id
        else:
            price_data["product_data"] = {
                "name": "AI Bootcamp Registration",
                "description": description,
            }
        line_item["price_data"] = price_data

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [line_item],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": registration_id,
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email

        idempotency_key = checkout_idempotency_key(registration_id, params)

        try:
            logger.info(
                "Creating Stripe checkout session for registration %s, amount %d minor units",
                registration_id,
                amount_cents,
            )

            session = client.checkout.sessions.create(
                params=params,
                options={"idempotency_key": idempotency_key},
            )

            logger.info(
                "Checkout session created: %s for registration %s",
                session.id,
                registration_id,
            )

            return {
                "session_id": session.id,
                "checkout_url": session.url,
            }

        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

    def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        """Retrieve a Checkout session as a plain dict.

        Args:
            session_id: Stripe checkout session ID (cs_xxx).

        Returns:
            Session object in the same shape as a webhook ``data.object``.

        Raises:
            StripeServiceError: If retrieval fails.
        """
        client = self._get_client()
        try:
            session = client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session retrieval failed for %s: %s (code: %s)",
                session_id,
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to retrieve checkout session: {e}",
                stripe_error_code=error_code,
            ) from e
        return _as_dict(session)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event as a plain dictionary.

        Raises:
            WebhookSignatureError: If the signature is invalid.
            StripeServiceError: If the signing secret cannot be retrieved.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise WebhookSignatureError("Invalid webhook signature") from e
        except ValueError as e:
            logger.warning("Invalid webhook payload: %s", str(e))
            raise WebhookSignatureError("Invalid webhook payload") from e

        # Parse the verified body ourselves to work with plain dicts
        event: dict[str, Any] = json.loads(payload)
        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of webhook payload for auditing.

        Args:
            payload: Raw webhook payload bytes.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance.

    Returns:
        StripeService: Shared service instance.
    """
    return StripeService()
