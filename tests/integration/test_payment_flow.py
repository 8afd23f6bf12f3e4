"""Integration tests for the registration payment flow.

Walks registrations through the API the way the web app and Stripe do:
register, start checkout, then receive webhook deliveries in various
orders and repetitions.
"""

from typing import Any
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from starlette import status

from bootcamp.services.registration_store import RegistrationStore


def _deliver(client: TestClient, stripe_payloads: Any, event: dict[str, Any]) -> Any:
    payload = stripe_payloads.encode(event)
    response = client.post(
        "/api/webhooks/stripe",
        content=payload,
        headers={"Stripe-Signature": stripe_payloads.sign(payload)},
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()


class TestCheckoutThenWebhook:
    def test_full_paid_flow(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        stripe_client: MagicMock,
        ses_client: MagicMock,
        sample_event: dict[str, Any],
    ) -> None:
        created = api_client.post(
            "/api/registrations",
            json={"eventId": 1, "name": "Ada Lovelace", "email": "ada@example.com"},
        ).json()
        registration_id = created["registration"]["registrationId"]

        checkout = api_client.post(
            "/api/checkout-sessions",
            json={
                "eventId": "1",
                "registrationId": registration_id,
                "amount": "199",
                "email": "ada@example.com",
            },
        )
        assert checkout.status_code == status.HTTP_200_OK
        session_id = checkout.json()["sessionId"]

        result = _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.checkout_completed(
                "evt_flow", session_id=session_id, client_reference_id=registration_id
            ),
        )
        assert result["processing_result"] == "success"

        registration = api_client.get(f"/api/registrations/{registration_id}").json()
        assert registration["paymentStatus"] == "paid"
        assert registration["amountPaid"] == "199.00"
        assert registration["checkoutSessionId"] == session_id
        assert registration["emailSent"] is True
        assert ses_client.send_email.call_count == 1

    def test_paid_registration_matches_stripe_amount(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        pending_registration: dict[str, Any],
        sample_event: dict[str, Any],
    ) -> None:
        """Registration 42 paid through session cs_abc for 19900 minor units."""
        _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.checkout_completed(
                session_id="cs_abc", amount_total=19900, payment_intent="pi_123"
            ),
        )

        registration = store.get("42")
        assert registration is not None
        assert registration.payment_status.value == "paid"
        assert str(registration.amount_paid) == "199.00"
        assert registration.payment_intent_id == "pi_123"

    def test_declined_card(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        pending_registration: dict[str, Any],
    ) -> None:
        _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.payment_intent(
                "payment_intent.payment_failed", error_message="card_declined"
            ),
        )

        registration = store.get("42")
        assert registration is not None
        assert registration.payment_status.value == "failed"
        assert registration.payment_error == "card_declined"
        assert registration.amount_paid is None


class TestDeliveryOrdering:
    def test_retry_after_failure_then_success(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        pending_registration: dict[str, Any],
        sample_event: dict[str, Any],
    ) -> None:
        _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.payment_intent(
                "payment_intent.payment_failed", "evt_fail", error_message="card_declined"
            ),
        )
        _deliver(api_client, stripe_payloads, stripe_payloads.checkout_completed("evt_ok"))

        registration = store.get("42")
        assert registration is not None
        assert registration.payment_status.value == "paid"
        assert registration.payment_error is None

    def test_late_failure_never_downgrades(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        pending_registration: dict[str, Any],
        sample_event: dict[str, Any],
    ) -> None:
        _deliver(api_client, stripe_payloads, stripe_payloads.checkout_completed("evt_ok"))

        result = _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.payment_intent(
                "payment_intent.payment_failed", "evt_late", error_message="card_declined"
            ),
        )

        assert result["processing_result"] == "skipped"
        registration = store.get("42")
        assert registration is not None
        assert registration.payment_status.value == "paid"

    def test_succeeded_and_completed_both_arrive(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        ses_client: MagicMock,
        pending_registration: dict[str, Any],
        sample_event: dict[str, Any],
    ) -> None:
        _deliver(
            api_client,
            stripe_payloads,
            stripe_payloads.payment_intent("payment_intent.succeeded", "evt_pi"),
        )
        _deliver(api_client, stripe_payloads, stripe_payloads.checkout_completed("evt_cs"))

        registration = store.get("42")
        assert registration is not None
        assert registration.payment_status.value == "paid"
        assert registration.email_sent is True
        assert ses_client.send_email.call_count == 1


class TestUncorrelatedCheckout:
    def test_two_deliveries_create_one_registration(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        store: RegistrationStore,
        ses_client: MagicMock,
        sample_event: dict[str, Any],
    ) -> None:
        """Two distinct events for the same session insert one paid row."""
        for event_id in ("evt_a", "evt_b"):
            _deliver(
                api_client,
                stripe_payloads,
                stripe_payloads.checkout_completed(
                    event_id,
                    session_id="cs_payment_link",
                    client_reference_id=None,
                    metadata={"eventId": "1"},
                    customer_email="grace@example.com",
                    customer_name="Grace Hopper",
                ),
            )

        registrations = store.find_by_email("grace@example.com")
        assert len(registrations) == 1
        assert registrations[0].payment_status.value == "paid"
        assert registrations[0].checkout_session_id == "cs_payment_link"
        assert ses_client.send_email.call_count == 1

    def test_success_page_before_webhook(
        self,
        api_client: TestClient,
        stripe_payloads: Any,
        stripe_client: MagicMock,
        store: RegistrationStore,
        sample_event: dict[str, Any],
    ) -> None:
        """Success page reconciliation and the later webhook agree on one row."""
        event = stripe_payloads.checkout_completed(
            "evt_late_hook",
            session_id="cs_race",
            client_reference_id=None,
            customer_email="linus@example.com",
        )
        session = MagicMock()
        session.to_dict.return_value = event["data"]["object"]
        stripe_client.checkout.sessions.retrieve.return_value = session

        confirmation = api_client.get("/api/checkout-sessions/cs_race/confirmation").json()
        result = _deliver(api_client, stripe_payloads, event)

        assert result["processing_result"] == "success"
        registrations = store.find_by_email("linus@example.com")
        assert len(registrations) == 1
        assert registrations[0].registration_id == confirmation["registration"]["registrationId"]
