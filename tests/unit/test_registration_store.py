"""Unit tests for RegistrationStore against moto-backed DynamoDB.

Covers creation, lookups, guarded payment updates and the checkout
session claim that keeps fallback inserts unique.
"""

import datetime as dt
from decimal import Decimal
from typing import Any
from unittest.mock import patch

import pytest

from bootcamp.models import (
    BootcampError,
    ErrorCode,
    InvalidPaymentTransition,
    PaymentStatus,
    PaymentUpdate,
    Registration,
    RegistrationCreate,
)
from bootcamp.services.registration_store import RegistrationStore, RegistrationStoreError

PAID_UPDATE = PaymentUpdate(
    payment_status=PaymentStatus.PAID,
    checkout_session_id="cs_abc",
    payment_intent_id="pi_123",
    amount_paid=Decimal("199.00"),
)


def _paid_registration(store: RegistrationStore, session_id: str = "cs_new") -> Registration:
    now = dt.datetime.now(dt.UTC)
    return Registration(
        registration_id=store.generate_registration_id(),
        event_id="1",
        name="Grace Hopper",
        email="grace@example.com",
        checkout_session_id=session_id,
        payment_intent_id="pi_999",
        payment_status=PaymentStatus.PAID,
        amount_paid=Decimal("199.00"),
        paid_at=now,
        created_at=now,
        updated_at=now,
    )


class TestCreate:
    def test_creates_pending_registration(self, store: RegistrationStore) -> None:
        registration = store.create(
            RegistrationCreate(event_id="1", name="Ada", email="Ada@Example.com")
        )

        assert registration.registration_id.startswith("REG-")
        assert registration.payment_status == PaymentStatus.PENDING
        assert registration.email == "ada@example.com"
        assert registration.email_sent is False

        stored = store.get(registration.registration_id)
        assert stored is not None
        assert stored.payment_status == PaymentStatus.PENDING
        assert stored.amount_paid is None

    def test_rejects_duplicate_id(self, store: RegistrationStore) -> None:
        data = RegistrationCreate(event_id="1", name="Ada", email="ada@example.com")
        store.create(data, registration_id="REG-FIXED")

        with pytest.raises(RegistrationStoreError):
            store.create(data, registration_id="REG-FIXED")


class TestLookups:
    def test_get_missing_returns_none(self, store: RegistrationStore) -> None:
        assert store.get("missing") is None

    def test_find_by_checkout_session_uses_claim(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        registration = store.find_by_checkout_session_id("cs_abc")

        assert registration is not None
        assert registration.registration_id == "42"

    def test_find_by_checkout_session_falls_back_to_index(
        self, store: RegistrationStore, dynamodb_resource: Any
    ) -> None:
        now = dt.datetime.now(dt.UTC).isoformat()
        dynamodb_resource.Table("test-bootcamp-registrations").put_item(
            Item={
                "registration_id": "7",
                "event_id": "1",
                "name": "Legacy",
                "email": "legacy@example.com",
                "checkout_session_id": "cs_legacy",
                "payment_status": "pending",
                "created_at": now,
            }
        )

        registration = store.find_by_checkout_session_id("cs_legacy")

        assert registration is not None
        assert registration.registration_id == "7"

    def test_find_by_payment_intent_id(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        store.apply_payment_update("42", PAID_UPDATE)

        registration = store.find_by_payment_intent_id("pi_123")

        assert registration is not None
        assert registration.registration_id == "42"
        assert store.find_by_payment_intent_id("pi_unknown") is None

    def test_find_by_email_is_case_insensitive(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        found = store.find_by_email("ADA@example.com")

        assert [r.registration_id for r in found] == ["42"]


class TestApplyPaymentUpdate:
    def test_pending_to_paid(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        registration = store.apply_payment_update("42", PAID_UPDATE)

        assert registration.payment_status == PaymentStatus.PAID
        assert registration.amount_paid == Decimal("199.00")
        assert registration.payment_intent_id == "pi_123"
        assert registration.paid_at is not None

    def test_pending_to_failed(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        registration = store.apply_payment_update(
            "42",
            PaymentUpdate(
                payment_status=PaymentStatus.FAILED,
                payment_intent_id="pi_123",
                payment_error="card_declined",
            ),
        )

        assert registration.payment_status == PaymentStatus.FAILED
        assert registration.payment_error == "card_declined"
        assert registration.amount_paid is None

    def test_failed_then_paid_clears_error(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        store.apply_payment_update(
            "42",
            PaymentUpdate(payment_status=PaymentStatus.FAILED, payment_error="card_declined"),
        )

        registration = store.apply_payment_update("42", PAID_UPDATE)

        assert registration.payment_status == PaymentStatus.PAID
        assert registration.payment_error is None

    def test_paid_is_never_downgraded(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        store.apply_payment_update("42", PAID_UPDATE)

        with pytest.raises(InvalidPaymentTransition):
            store.apply_payment_update(
                "42",
                PaymentUpdate(payment_status=PaymentStatus.FAILED, payment_error="late"),
            )

        stored = store.get("42")
        assert stored is not None
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.payment_error is None

    def test_reapplying_paid_keeps_first_paid_at(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        first = store.apply_payment_update("42", PAID_UPDATE)
        second = store.apply_payment_update("42", PAID_UPDATE)

        assert second.payment_status == PaymentStatus.PAID
        assert second.paid_at == first.paid_at

    def test_missing_registration(self, store: RegistrationStore) -> None:
        with pytest.raises(BootcampError) as exc_info:
            store.apply_payment_update("missing", PAID_UPDATE)

        assert exc_info.value.code == ErrorCode.REGISTRATION_NOT_FOUND

    def test_claims_session_id(
        self, store: RegistrationStore, dynamodb_resource: Any
    ) -> None:
        registration = store.create(
            RegistrationCreate(event_id="1", name="Ada", email="ada@example.com")
        )
        update = PAID_UPDATE.model_copy(update={"checkout_session_id": "cs_fresh"})

        store.apply_payment_update(registration.registration_id, update)

        claim = dynamodb_resource.Table("test-bootcamp-checkout-sessions").get_item(
            Key={"checkout_session_id": "cs_fresh"}
        )["Item"]
        assert claim["registration_id"] == registration.registration_id


class TestCheckoutSessionClaims:
    def test_set_checkout_session_id(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        assert store.set_checkout_session_id("42", "cs_second") is True

        registration = store.find_by_checkout_session_id("cs_second")
        assert registration is not None
        assert registration.registration_id == "42"

    def test_set_checkout_session_id_for_missing_registration(
        self, store: RegistrationStore
    ) -> None:
        assert store.set_checkout_session_id("missing", "cs_x") is False

    def test_session_id_claimed_by_another_registration(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        other = store.create(
            RegistrationCreate(event_id="1", name="Bob", email="bob@example.com")
        )

        assert store.set_checkout_session_id(other.registration_id, "cs_abc") is False

    def test_create_paid_from_checkout(self, store: RegistrationStore) -> None:
        registration = _paid_registration(store)

        created_registration, created = store.create_paid_from_checkout(registration)

        assert created is True
        assert created_registration.registration_id == registration.registration_id
        found = store.find_by_checkout_session_id("cs_new")
        assert found is not None
        assert found.payment_status == PaymentStatus.PAID

    def test_second_insert_for_same_session_returns_first(
        self, store: RegistrationStore
    ) -> None:
        first, _ = store.create_paid_from_checkout(_paid_registration(store))

        second, created = store.create_paid_from_checkout(_paid_registration(store))

        assert created is False
        assert second.registration_id == first.registration_id
        assert len(store.find_by_email("grace@example.com")) == 1

    def test_insert_requires_session_id(self, store: RegistrationStore) -> None:
        registration = _paid_registration(store).model_copy(
            update={"checkout_session_id": None}
        )

        with pytest.raises(ValueError):
            store.create_paid_from_checkout(registration)

    def test_insert_releases_claim_of_missing_registration(
        self, store: RegistrationStore
    ) -> None:
        store.db.put_item(
            RegistrationStore.CLAIMS_TABLE,
            {"checkout_session_id": "cs_new", "registration_id": "REG-DELETED"},
        )

        registration, created = store.create_paid_from_checkout(_paid_registration(store))

        assert created is True
        found = store.find_by_checkout_session_id("cs_new")
        assert found is not None
        assert found.registration_id == registration.registration_id

    def test_insert_gives_up_without_claim(self, store: RegistrationStore) -> None:
        with patch.object(store.db, "transact_write", return_value=False):
            with pytest.raises(RegistrationStoreError):
                store.create_paid_from_checkout(_paid_registration(store))


class TestFlags:
    def test_set_email_sent(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        assert store.set_email_sent("42") is True
        assert store.set_email_sent("42") is True

        stored = store.get("42")
        assert stored is not None
        assert stored.email_sent is True

    def test_set_email_sent_missing(self, store: RegistrationStore) -> None:
        assert store.set_email_sent("missing") is False

    def test_link_auth_user_only_once(
        self, store: RegistrationStore, pending_registration: dict[str, Any]
    ) -> None:
        linked = store.link_auth_user("42", "user-1")
        assert linked is not None
        assert linked.auth_user_id == "user-1"

        assert store.link_auth_user("42", "user-2") is None
        assert [r.registration_id for r in store.find_by_auth_user("user-1")] == ["42"]
