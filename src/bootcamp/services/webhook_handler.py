"""Webhook handler for processing Stripe events.

Provides business logic for handling webhook events separate from
HTTP routing concerns. This enables:
- Unit testing without HTTP overhead
- Reuse by the checkout success page, which reconciles the same session
  before the webhook arrives
"""

import datetime as dt
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from bootcamp.config import Settings, get_settings
from bootcamp.models import (
    BootcampError,
    ErrorCode,
    InvalidPaymentTransition,
    PaymentStatus,
    PaymentUpdate,
    Registration,
    RegistrationEmailData,
    StripeWebhookEvent,
    WebhookOutcome,
)
from bootcamp.utils.logging import get_logger, log_webhook_event
from bootcamp.utils.money import from_minor_units

from .email_templates import display_name

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .event_store import EventStore
    from .notification_service import NotificationService
    from .registration_store import RegistrationStore

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"

HANDLED_EVENT_TYPES = frozenset({CHECKOUT_COMPLETED, PAYMENT_SUCCEEDED, PAYMENT_FAILED})

DEFAULT_PAYMENT_ERROR = "Payment failed"


def _object_id(value: Any) -> str | None:
    """Return the id of a Stripe reference that may be expanded."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


class WebhookHandler:
    """Handler for processing Stripe webhook events.

    Reconciles registration payment state and records every processed event
    so redeliveries are answered without re-processing.
    """

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(
        self,
        store: "RegistrationStore",
        events: "EventStore",
        notifications: "NotificationService",
        db: "DynamoDBService",
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.events = events
        self.notifications = notifications
        self.db = db
        self._settings = settings or get_settings()

    def is_event_already_processed(self, event_id: str) -> bool:
        """Check if webhook event was already processed (idempotency).

        Args:
            event_id: Stripe event ID

        Returns:
            True if event was already processed
        """
        existing = self.db.get_item(
            self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id}, consistent_read=True
        )
        return existing is not None

    def log_event(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str,
        registration_id: str | None,
        processing_result: str,
        error_message: str | None = None,
    ) -> None:
        """Record a processed webhook event for idempotency and audit trail.

        A failed write is logged only; reprocessing a redelivered event is
        safe because every update is idempotent.

        Args:
            event_id: Stripe event ID
            event_type: Event type (checkout.session.completed, etc.)
            payload_hash: SHA-256 hash of payload
            registration_id: Associated registration ID (if any)
            processing_result: Result (success, skipped, not_found, ignored)
            error_message: Explanation for a non-success result
        """
        entry = StripeWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            processed_at=dt.datetime.now(dt.UTC),
            payload_hash=payload_hash,
            registration_id=registration_id,
            processing_result=processing_result,
            error_message=error_message,
        )
        item: dict[str, Any] = entry.model_dump(mode="json", exclude_none=True)

        try:
            self.db.put_item(self.WEBHOOK_EVENTS_TABLE, item)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to record webhook event %s: %s", event_id, e)

    def handle_event(self, event: dict[str, Any], payload_hash: str) -> WebhookOutcome:
        """Process one verified Stripe event.

        Exceptions (for example an unavailable database) propagate so the
        caller can answer with a retryable error; such events are not
        recorded and Stripe will deliver them again.

        Args:
            event: Verified event parsed from the request body
            payload_hash: SHA-256 hash of the raw body

        Returns:
            WebhookOutcome describing what happened
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")
        data_object: dict[str, Any] = event.get("data", {}).get("object", {}) or {}

        log_webhook_event(logger, event_type, event_id, result="received")

        if self.is_event_already_processed(event_id):
            log_webhook_event(logger, event_type, event_id, result="duplicate")
            return WebhookOutcome(result="duplicate", message="Event already processed")

        if event_type not in HANDLED_EVENT_TYPES:
            outcome = WebhookOutcome(
                result="ignored", message=f"Event type '{event_type}' not handled"
            )
        elif event_type == CHECKOUT_COMPLETED:
            outcome = self.reconcile_checkout_session(data_object)
        elif event_type == PAYMENT_SUCCEEDED:
            outcome = self.handle_payment_succeeded(data_object)
        else:
            outcome = self.handle_payment_failed(data_object)

        self.log_event(
            event_id=event_id,
            event_type=event_type,
            payload_hash=payload_hash,
            registration_id=outcome.registration_id,
            processing_result=outcome.result,
            error_message=outcome.message if outcome.result != "success" else None,
        )
        log_webhook_event(
            logger,
            event_type,
            event_id,
            registration_id=outcome.registration_id,
            result=outcome.result,
            error=outcome.message if outcome.result != "success" else None,
        )
        return outcome

    # checkout.session.completed

    def reconcile_checkout_session(self, session: dict[str, Any]) -> WebhookOutcome:
        """Mark the registration behind a completed checkout session as paid.

        Correlates by ``client_reference_id`` (then ``metadata.registrationId``).
        Without a correlated id a paid registration is inserted from the
        customer details, guarded by a claim on the session id.

        Args:
            session: Checkout Session object

        Returns:
            WebhookOutcome with the registration ID when one was updated
        """
        session_id = session.get("id")
        metadata = session.get("metadata") or {}

        if session.get("payment_status") == "unpaid":
            return WebhookOutcome(
                result="skipped", message="Checkout session is not paid yet"
            )

        payment_intent_id = _object_id(session.get("payment_intent"))
        if not payment_intent_id:
            # e.g. a 100% discount; the registration stays pending until
            # someone reconciles it by hand
            logger.error(
                "Checkout session %s (registration %s, payment_status %s) has no "
                "payment intent; manual reconciliation required",
                session_id,
                session.get("client_reference_id") or metadata.get("registrationId"),
                session.get("payment_status"),
            )
            return WebhookOutcome(
                result="skipped", message="Checkout session has no payment intent"
            )

        update = PaymentUpdate(
            payment_status=PaymentStatus.PAID,
            checkout_session_id=session_id,
            payment_intent_id=payment_intent_id,
            amount_paid=from_minor_units(int(session.get("amount_total") or 0)),
        )

        registration_id = session.get("client_reference_id") or metadata.get(
            "registrationId"
        )
        if registration_id:
            result = self._apply_update(registration_id, update)
            if isinstance(result, WebhookOutcome):
                return result
            registration = result
        else:
            registration = self._insert_from_checkout(session, update)
            if registration is None:
                return WebhookOutcome(
                    result="skipped", message="Checkout session has no customer email"
                )

        if not registration.email_sent:
            self._send_confirmation(registration)

        return WebhookOutcome(result="success", registration_id=registration.registration_id)

    def _insert_from_checkout(
        self, session: dict[str, Any], update: PaymentUpdate
    ) -> Registration | None:
        metadata = session.get("metadata") or {}
        customer = session.get("customer_details") or {}
        email = (customer.get("email") or session.get("customer_email") or "").strip().lower()
        if not email:
            logger.warning(
                "Checkout session %s has neither registration id nor email",
                session.get("id"),
            )
            return None

        auth_user_id = metadata.get("userId") or self._lookup_auth_user_id(email)
        now = dt.datetime.now(dt.UTC)
        registration = Registration(
            registration_id=self.store.generate_registration_id(),
            event_id=str(metadata.get("eventId") or self._settings.fallback_event_id),
            name=customer.get("name") or "Unknown",
            email=email,
            auth_user_id=auth_user_id,
            checkout_session_id=update.checkout_session_id,
            payment_intent_id=update.payment_intent_id,
            payment_status=PaymentStatus.PAID,
            amount_paid=update.amount_paid,
            paid_at=now,
            created_at=now,
            updated_at=now,
        )

        registration, created = self.store.create_paid_from_checkout(registration)
        if created:
            logger.info(
                "Created paid registration %s from checkout session %s",
                registration.registration_id,
                update.checkout_session_id,
            )
        elif registration.payment_status != PaymentStatus.PAID:
            # The session was claimed by a pending registration
            registration = self.store.apply_payment_update(
                registration.registration_id, update
            )
        return registration

    def _lookup_auth_user_id(self, email: str) -> str | None:
        user = self.db.get_user_by_email(email)
        if not user:
            return None
        return user.get("auth_user_id")

    # payment_intent.*

    def handle_payment_succeeded(self, payment_intent: dict[str, Any]) -> WebhookOutcome:
        """Mark the registration in ``metadata.registrationId`` as paid."""
        registration_id = (payment_intent.get("metadata") or {}).get("registrationId")
        if not registration_id:
            logger.warning(
                "payment_intent.succeeded %s without registrationId in metadata",
                payment_intent.get("id"),
            )
            return WebhookOutcome(
                result="skipped", message="Missing registrationId in metadata"
            )

        amount = payment_intent.get("amount_received") or payment_intent.get("amount") or 0
        update = PaymentUpdate(
            payment_status=PaymentStatus.PAID,
            payment_intent_id=payment_intent.get("id"),
            amount_paid=from_minor_units(int(amount)),
        )
        result = self._apply_update(registration_id, update)
        if isinstance(result, WebhookOutcome):
            return result
        return WebhookOutcome(result="success", registration_id=registration_id)

    def handle_payment_failed(self, payment_intent: dict[str, Any]) -> WebhookOutcome:
        """Mark the registration in ``metadata.registrationId`` as failed."""
        registration_id = (payment_intent.get("metadata") or {}).get("registrationId")
        if not registration_id:
            logger.warning(
                "payment_intent.payment_failed %s without registrationId in metadata",
                payment_intent.get("id"),
            )
            return WebhookOutcome(
                result="skipped", message="Missing registrationId in metadata"
            )

        last_error = payment_intent.get("last_payment_error") or {}
        update = PaymentUpdate(
            payment_status=PaymentStatus.FAILED,
            payment_intent_id=payment_intent.get("id"),
            payment_error=last_error.get("message") or DEFAULT_PAYMENT_ERROR,
        )
        result = self._apply_update(registration_id, update)
        if isinstance(result, WebhookOutcome):
            return result
        return WebhookOutcome(result="success", registration_id=registration_id)

    # Helpers

    def _apply_update(
        self, registration_id: str, update: PaymentUpdate
    ) -> Registration | WebhookOutcome:
        """Apply an update, mapping terminal outcomes to a WebhookOutcome."""
        try:
            return self.store.apply_payment_update(registration_id, update)
        except BootcampError as e:
            if e.code != ErrorCode.REGISTRATION_NOT_FOUND:
                raise
            return WebhookOutcome(
                result="not_found",
                registration_id=registration_id,
                message=f"Registration {registration_id} not found",
            )
        except InvalidPaymentTransition as e:
            return WebhookOutcome(
                result="skipped", registration_id=registration_id, message=str(e)
            )

    def _send_confirmation(self, registration: Registration) -> None:
        """Send the confirmation email; failures are logged, never raised."""
        try:
            event = self.events.get(registration.event_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Event lookup failed for confirmation of %s: %s",
                registration.registration_id,
                e,
            )
            event = None

        data = RegistrationEmailData(
            registration_id=registration.registration_id,
            event_id=registration.event_id,
            event_title=event.name if event else "AI Bootcamp Event",
            event_date=event.start_date if event else None,
            name=display_name(registration.name, registration.email),
            email=registration.email,
            meeting_link=event.meeting_link if event else None,
            meeting_type=event.meeting_type if event else None,
        )
        result = self.notifications.send_registration_confirmation(data)
        if not result.success:
            logger.warning(
                "Confirmation email for %s failed: %s",
                registration.registration_id,
                result.message,
            )
