"""Checkout session creation for registrations."""

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from botocore.exceptions import BotoCoreError, ClientError

from bootcamp.config import Settings, get_settings
from bootcamp.models import BootcampError, ErrorCode, PaymentStatus, Registration
from bootcamp.utils.logging import get_logger, log_registration_operation
from bootcamp.utils.money import to_minor_units

if TYPE_CHECKING:
    from .event_store import EventStore
    from .registration_store import RegistrationStore
    from .stripe_service import StripeService
    from .webhook_handler import WebhookHandler

logger = get_logger(__name__)


class CheckoutService:
    """Starts hosted Stripe checkouts for pending registrations."""

    def __init__(
        self,
        store: "RegistrationStore",
        events: "EventStore",
        stripe_service: "StripeService",
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.events = events
        self.stripe = stripe_service
        self._settings = settings or get_settings()

    def _success_url(self, registration_id: str, event_id: str, user_id: str | None) -> str:
        # Stripe substitutes {CHECKOUT_SESSION_ID}, so it must stay unencoded
        query = urlencode(
            {"eventId": event_id, "userId": user_id or "", "registrationId": registration_id}
        )
        return (
            f"{self._settings.app_base_url}/payment/success"
            f"?session_id={{CHECKOUT_SESSION_ID}}&{query}"
        )

    def _cancel_url(self, registration_id: str) -> str:
        query = urlencode({"registration_id": registration_id})
        return f"{self._settings.app_base_url}/payment/cancel?{query}"

    def start_checkout(
        self,
        *,
        event_id: str,
        registration_id: str,
        amount: Decimal,
        email: str,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a checkout session and record it on the registration.

        A Stripe failure propagates without touching the registration. A
        failure to record the session id is logged and the checkout URL is
        still returned, since the webhook correlates by registration id.

        Args:
            event_id: Event being paid for
            registration_id: Pending registration
            amount: Price in major currency units
            email: Customer email for the Stripe receipt
            user_id: Authenticated account ID, if any

        Returns:
            Dict with ``url`` and ``session_id``

        Raises:
            BootcampError: INVALID_AMOUNT, REGISTRATION_NOT_FOUND or
                REGISTRATION_ALREADY_PAID
            StripeServiceError: If Stripe rejects the session
        """
        amount_cents = to_minor_units(amount)
        if amount_cents <= 0:
            raise BootcampError(ErrorCode.INVALID_AMOUNT, details={"amount": str(amount)})

        registration = self.store.get(registration_id)
        if registration is None:
            raise BootcampError(
                ErrorCode.REGISTRATION_NOT_FOUND,
                details={"registration_id": registration_id},
            )
        if registration.payment_status == PaymentStatus.PAID:
            raise BootcampError(
                ErrorCode.REGISTRATION_ALREADY_PAID,
                details={"registration_id": registration_id},
            )
        if registration.event_id != event_id:
            logger.warning(
                "Checkout for registration %s uses event %s but registration is for %s",
                registration_id,
                event_id,
                registration.event_id,
            )

        event = self.events.get(event_id)
        description = event.name if event else f"Event {event_id}"

        session = self.stripe.create_checkout_session(
            registration_id=registration_id,
            event_id=event_id,
            amount_cents=amount_cents,
            description=description,
            customer_email=email,
            user_id=user_id,
            success_url=self._success_url(registration_id, event_id, user_id),
            cancel_url=self._cancel_url(registration_id),
        )
        session_id = session["session_id"]

        try:
            recorded = self.store.set_checkout_session_id(registration_id, session_id)
            if not recorded:
                logger.warning(
                    "Checkout session %s not recorded on registration %s",
                    session_id,
                    registration_id,
                )
        except (ClientError, BotoCoreError) as e:
            log_registration_operation(
                logger,
                "set_checkout_session_id",
                registration_id=registration_id,
                checkout_session_id=session_id,
                error=str(e),
            )

        log_registration_operation(
            logger,
            "create_checkout_session",
            registration_id=registration_id,
            event_id=event_id,
            checkout_session_id=session_id,
            amount=amount,
        )
        return {"url": session["checkout_url"], "session_id": session_id}

    def confirm_session(
        self, session_id: str, reconciler: "WebhookHandler"
    ) -> Registration:
        """Reconcile a checkout session from the success page.

        The browser often returns before the webhook lands, so the session is
        read from Stripe and applied exactly as the webhook would apply it.

        Args:
            session_id: Stripe checkout session ID
            reconciler: Webhook handler performing the reconciliation

        Returns:
            The paid registration

        Raises:
            BootcampError: CHECKOUT_SESSION_NOT_PAID or REGISTRATION_NOT_FOUND
            StripeServiceError: If the session cannot be retrieved
        """
        session = self.stripe.retrieve_checkout_session(session_id)
        if session.get("payment_status") != "paid":
            raise BootcampError(
                ErrorCode.CHECKOUT_SESSION_NOT_PAID,
                details={"session_id": session_id},
            )

        outcome = reconciler.reconcile_checkout_session(session)
        registration = None
        if outcome.registration_id:
            registration = self.store.get(outcome.registration_id)
        if registration is None:
            registration = self.store.find_by_checkout_session_id(session_id)
        if registration is None:
            raise BootcampError(
                ErrorCode.REGISTRATION_NOT_FOUND,
                details={"session_id": session_id},
            )

        log_registration_operation(
            logger,
            "confirm_checkout_session",
            registration_id=registration.registration_id,
            checkout_session_id=session_id,
            status=registration.payment_status.value,
            result=outcome.result,
        )
        return registration
