"""Persistence for registrations.

The store enforces payment status transitions at write time with a
conditional update, and keeps checkout session ids unique through claim
items in the ``checkout-sessions`` table.
"""

import datetime as dt
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from bootcamp.models import (
    BootcampError,
    ErrorCode,
    InvalidPaymentTransition,
    PaymentStatus,
    PaymentUpdate,
    Registration,
    RegistrationCreate,
    allowed_sources,
    transition,
)
from bootcamp.utils.logging import get_logger
from bootcamp.utils.money import CENT

from .dynamodb import serialize_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class RegistrationStoreError(Exception):
    """Raised when a registration write cannot be completed."""


def _parse_timestamp(value: str | None) -> dt.datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return dt.datetime.fromisoformat(value)


class RegistrationStore:
    """CRUD and state-guarded updates for the registrations table."""

    TABLE = "registrations"
    CLAIMS_TABLE = "checkout-sessions"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize the store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    @staticmethod
    def generate_registration_id() -> str:
        """Generate a unique registration ID like REG-ABC123DEF456."""
        return f"REG-{uuid.uuid4().hex[:12].upper()}"

    # Reads

    def get(self, registration_id: str) -> Registration | None:
        """Get a registration by ID.

        Args:
            registration_id: Registration ID

        Returns:
            Registration or None if not found
        """
        item = self.db.get_item(
            self.TABLE, {"registration_id": registration_id}, consistent_read=True
        )
        return self._item_to_registration(item) if item else None

    def find_by_checkout_session_id(self, session_id: str) -> Registration | None:
        """Find the registration that owns a checkout session.

        The claim table is read first because it is strongly consistent; the
        GSI covers rows written before a claim existed.
        """
        claim = self.db.get_item(
            self.CLAIMS_TABLE, {"checkout_session_id": session_id}, consistent_read=True
        )
        if claim:
            return self.get(claim["registration_id"])

        items = self.db.query_by_gsi(
            self.TABLE, "checkout_session_id-index", "checkout_session_id", session_id
        )
        return self._item_to_registration(items[0]) if items else None

    def find_by_payment_intent_id(self, payment_intent_id: str) -> Registration | None:
        """Find the registration paid (or attempted) with a payment intent."""
        items = self.db.query_by_gsi(
            self.TABLE, "payment_intent_id-index", "payment_intent_id", payment_intent_id
        )
        return self._item_to_registration(items[0]) if items else None

    def find_by_email(self, email: str) -> list[Registration]:
        """Find all registrations made with an email address."""
        items = self.db.query_by_gsi(
            self.TABLE, "email-index", "email", email.strip().lower()
        )
        return [self._item_to_registration(item) for item in items]

    def find_by_auth_user(self, auth_user_id: str) -> list[Registration]:
        """Find all registrations linked to an authenticated account."""
        items = self.db.query_by_gsi(
            self.TABLE, "auth_user_id-index", "auth_user_id", auth_user_id
        )
        return [self._item_to_registration(item) for item in items]

    # Writes

    def create(
        self,
        data: RegistrationCreate,
        *,
        registration_id: str | None = None,
    ) -> Registration:
        """Create a pending registration.

        Args:
            data: Registration creation data
            registration_id: Explicit ID (generated when omitted)

        Returns:
            The created Registration

        Raises:
            RegistrationStoreError: If the ID is already taken
        """
        now = dt.datetime.now(dt.UTC)
        registration = Registration(
            registration_id=registration_id or self.generate_registration_id(),
            event_id=data.event_id,
            name=data.name,
            email=data.email.strip().lower(),
            auth_user_id=data.auth_user_id,
            payment_status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        created = self.db.put_item(
            self.TABLE,
            self._registration_to_item(registration),
            condition_expression="attribute_not_exists(registration_id)",
        )
        if not created:
            raise RegistrationStoreError(
                f"Registration {registration.registration_id} already exists"
            )
        return registration

    def apply_payment_update(
        self,
        registration_id: str,
        update: PaymentUpdate,
    ) -> Registration:
        """Write payment fields if the status transition is allowed.

        Re-applying the same terminal update is an idempotent overwrite;
        ``paid_at`` keeps its first value.

        Args:
            registration_id: Registration to update
            update: Payment fields to write

        Returns:
            The updated Registration

        Raises:
            BootcampError: REGISTRATION_NOT_FOUND if no row matches
            InvalidPaymentTransition: If the stored status cannot move to the
                requested one
        """
        target = update.payment_status
        now = dt.datetime.now(dt.UTC).isoformat()

        set_parts = ["payment_status = :status", "updated_at = :now"]
        values: dict[str, Any] = {":status": target.value, ":now": now}
        remove_parts: list[str] = []

        if update.checkout_session_id:
            set_parts.append("checkout_session_id = :cs")
            values[":cs"] = update.checkout_session_id
        if update.payment_intent_id:
            set_parts.append("payment_intent_id = :pi")
            values[":pi"] = update.payment_intent_id

        if target == PaymentStatus.PAID:
            set_parts.append("amount_paid = :amount")
            set_parts.append("paid_at = if_not_exists(paid_at, :now)")
            values[":amount"] = update.amount_paid
            remove_parts.append("payment_error")
        elif target == PaymentStatus.FAILED:
            set_parts.append("payment_error = :error")
            values[":error"] = update.payment_error or "Payment failed"

        update_expression = "SET " + ", ".join(set_parts)
        if remove_parts:
            update_expression += " REMOVE " + ", ".join(remove_parts)

        sources = allowed_sources(target)
        source_keys = []
        for i, status in enumerate(sources):
            values[f":src{i}"] = status.value
            source_keys.append(f":src{i}")
        condition = (
            "attribute_exists(registration_id) AND "
            f"payment_status IN ({', '.join(source_keys)})"
        )

        # One retry covers a concurrent write that landed between our
        # conditional update and the re-read
        for _ in range(2):
            attrs = self.db.update_item(
                self.TABLE,
                {"registration_id": registration_id},
                update_expression,
                values,
                condition_expression=condition,
            )
            if attrs is not None:
                if update.checkout_session_id:
                    self._claim_session(update.checkout_session_id, registration_id)
                return self._item_to_registration(attrs)

            current = self.get(registration_id)
            if current is None:
                raise BootcampError(
                    ErrorCode.REGISTRATION_NOT_FOUND,
                    details={"registration_id": registration_id},
                )
            transition(current.payment_status, target)

        raise InvalidPaymentTransition(current.payment_status, target)

    def set_checkout_session_id(self, registration_id: str, session_id: str) -> bool:
        """Attach a checkout session to a registration and claim the session id.

        Args:
            registration_id: Registration being paid for
            session_id: Stripe checkout session ID

        Returns:
            True if written, False if the registration is missing or the
            session id belongs to another registration
        """
        now = dt.datetime.now(dt.UTC).isoformat()
        transact_items = [
            {
                "Update": {
                    "TableName": self.db.table_name(self.TABLE),
                    "Key": {"registration_id": {"S": registration_id}},
                    "UpdateExpression": "SET checkout_session_id = :cs, updated_at = :now",
                    "ConditionExpression": "attribute_exists(registration_id)",
                    "ExpressionAttributeValues": {
                        ":cs": {"S": session_id},
                        ":now": {"S": now},
                    },
                }
            },
            {
                "Put": {
                    "TableName": self.db.table_name(self.CLAIMS_TABLE),
                    "Item": serialize_item(
                        {
                            "checkout_session_id": session_id,
                            "registration_id": registration_id,
                            "claimed_at": now,
                        }
                    ),
                    "ConditionExpression": (
                        "attribute_not_exists(checkout_session_id) OR registration_id = :rid"
                    ),
                    "ExpressionAttributeValues": {":rid": {"S": registration_id}},
                }
            },
        ]
        return self.db.transact_write(transact_items)

    def create_paid_from_checkout(
        self,
        registration: Registration,
    ) -> tuple[Registration, bool]:
        """Insert an already-paid registration for an uncorrelated checkout session.

        The registration row and the session-id claim are written in one
        transaction, so two deliveries of the same session create one row.

        Args:
            registration: Paid registration carrying a checkout_session_id

        Returns:
            Tuple of (registration, created). When the session was already
            claimed, the existing registration is returned with created=False.

        Raises:
            RegistrationStoreError: If the write keeps failing without an
                existing claim to fall back to
        """
        session_id = registration.checkout_session_id
        if not session_id:
            raise ValueError("checkout_session_id is required for a checkout insert")

        transact_items = [
            {
                "Put": {
                    "TableName": self.db.table_name(self.TABLE),
                    "Item": serialize_item(self._registration_to_item(registration)),
                    "ConditionExpression": "attribute_not_exists(registration_id)",
                }
            },
            {
                "Put": {
                    "TableName": self.db.table_name(self.CLAIMS_TABLE),
                    "Item": serialize_item(
                        {
                            "checkout_session_id": session_id,
                            "registration_id": registration.registration_id,
                            "claimed_at": registration.created_at.isoformat(),
                        }
                    ),
                    "ConditionExpression": "attribute_not_exists(checkout_session_id)",
                }
            },
        ]

        for _ in range(2):
            if self.db.transact_write(transact_items):
                return registration, True

            existing = self.find_by_checkout_session_id(session_id)
            if existing is not None:
                logger.info(
                    "Checkout session %s already claimed by registration %s",
                    session_id,
                    existing.registration_id,
                )
                return existing, False

            if not self._release_stale_claim(session_id):
                break

        raise RegistrationStoreError(
            f"Could not record registration for checkout session {session_id}"
        )

    def _release_stale_claim(self, session_id: str) -> bool:
        """Delete a claim whose registration no longer exists.

        Returns:
            True if a stale claim was removed and the insert can be retried
        """
        claim = self.db.get_item(
            self.CLAIMS_TABLE, {"checkout_session_id": session_id}, consistent_read=True
        )
        if not claim or self.get(claim["registration_id"]) is not None:
            return False

        logger.warning(
            "Releasing claim on checkout session %s held by missing registration %s",
            session_id,
            claim["registration_id"],
        )
        return self.db.delete_item(
            self.CLAIMS_TABLE,
            {"checkout_session_id": session_id},
            condition_expression="registration_id = :rid",
            expression_attribute_values={":rid": claim["registration_id"]},
        )

    def set_email_sent(self, registration_id: str) -> bool:
        """Mark the confirmation email as sent.

        Repeating the write is harmless; the flag never goes back to false.

        Returns:
            True if the registration exists
        """
        attrs = self.db.update_item(
            self.TABLE,
            {"registration_id": registration_id},
            "SET email_sent = :sent, updated_at = :now",
            {":sent": True, ":now": dt.datetime.now(dt.UTC).isoformat()},
            condition_expression="attribute_exists(registration_id)",
        )
        return attrs is not None

    def link_auth_user(self, registration_id: str, auth_user_id: str) -> Registration | None:
        """Link an unlinked registration to an authenticated account.

        Returns:
            The updated Registration, or None if it is missing or already linked
        """
        attrs = self.db.update_item(
            self.TABLE,
            {"registration_id": registration_id},
            "SET auth_user_id = :uid, updated_at = :now",
            {":uid": auth_user_id, ":now": dt.datetime.now(dt.UTC).isoformat()},
            condition_expression=(
                "attribute_exists(registration_id) AND attribute_not_exists(auth_user_id)"
            ),
        )
        return self._item_to_registration(attrs) if attrs else None

    def _claim_session(self, session_id: str, registration_id: str) -> None:
        claimed = self.db.put_item(
            self.CLAIMS_TABLE,
            {
                "checkout_session_id": session_id,
                "registration_id": registration_id,
                "claimed_at": dt.datetime.now(dt.UTC).isoformat(),
            },
            condition_expression=(
                "attribute_not_exists(checkout_session_id) OR registration_id = :rid"
            ),
            expression_attribute_values={":rid": registration_id},
        )
        if not claimed:
            logger.warning(
                "Checkout session %s is claimed by another registration than %s",
                session_id,
                registration_id,
            )

    # Conversion helpers

    def _registration_to_item(self, registration: Registration) -> dict[str, Any]:
        """Convert Registration model to DynamoDB item.

        None values are omitted because GSI key attributes cannot be NULL.
        """
        item: dict[str, Any] = {
            "registration_id": registration.registration_id,
            "event_id": registration.event_id,
            "name": registration.name,
            "email": registration.email,
            "payment_status": registration.payment_status.value,
            "email_sent": registration.email_sent,
            "created_at": registration.created_at.isoformat(),
            "updated_at": registration.updated_at.isoformat(),
        }
        if registration.auth_user_id:
            item["auth_user_id"] = registration.auth_user_id
        if registration.checkout_session_id:
            item["checkout_session_id"] = registration.checkout_session_id
        if registration.payment_intent_id:
            item["payment_intent_id"] = registration.payment_intent_id
        if registration.payment_error:
            item["payment_error"] = registration.payment_error
        if registration.amount_paid is not None:
            item["amount_paid"] = registration.amount_paid
        if registration.paid_at:
            item["paid_at"] = registration.paid_at.isoformat()
        return item

    def _item_to_registration(self, item: dict[str, Any]) -> Registration:
        """Convert DynamoDB item to Registration model."""
        amount_paid = item.get("amount_paid")
        return Registration(
            registration_id=item["registration_id"],
            event_id=str(item["event_id"]),
            name=item.get("name", ""),
            email=item.get("email", ""),
            auth_user_id=item.get("auth_user_id"),
            checkout_session_id=item.get("checkout_session_id"),
            payment_intent_id=item.get("payment_intent_id"),
            payment_status=PaymentStatus(item.get("payment_status", "pending")),
            payment_error=item.get("payment_error"),
            amount_paid=(
                Decimal(str(amount_paid)).quantize(CENT) if amount_paid is not None else None
            ),
            email_sent=bool(item.get("email_sent", False)),
            paid_at=_parse_timestamp(item.get("paid_at")),
            created_at=_parse_timestamp(item["created_at"]),
            updated_at=_parse_timestamp(item.get("updated_at") or item["created_at"]),
        )
