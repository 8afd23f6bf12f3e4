"""Contract tests for registration endpoints."""

from typing import Any

from fastapi.testclient import TestClient
from starlette import status


class TestCreateRegistration:
    def test_creates_with_201(
        self, api_client: TestClient, sample_event: dict[str, Any]
    ) -> None:
        response = api_client.post(
            "/api/registrations",
            json={"eventId": 1, "name": " Bob ", "email": "Bob@Example.com"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["created"] is True
        assert body["registration"]["eventId"] == "1"
        assert body["registration"]["name"] == "Bob"
        assert body["registration"]["email"] == "bob@example.com"
        assert body["registration"]["paymentStatus"] == "pending"
        assert body["registration"]["emailSent"] is False

    def test_existing_registration_with_200(
        self,
        api_client: TestClient,
        sample_event: dict[str, Any],
        pending_registration: dict[str, Any],
    ) -> None:
        response = api_client.post(
            "/api/registrations",
            json={"eventId": "1", "name": "Ada", "email": "ada@example.com"},
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["created"] is False
        assert body["registration"]["registrationId"] == "42"

    def test_unknown_event(self, api_client: TestClient) -> None:
        response = api_client.post(
            "/api/registrations",
            json={"eventId": "404", "name": "Bob", "email": "bob@example.com"},
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "ERR_002"


class TestGetRegistration:
    def test_found(
        self, api_client: TestClient, pending_registration: dict[str, Any]
    ) -> None:
        response = api_client.get("/api/registrations/42")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["registrationId"] == "42"
        assert body["checkoutSessionId"] == "cs_abc"
        assert body["paymentError"] is None

    def test_not_found(self, api_client: TestClient) -> None:
        response = api_client.get("/api/registrations/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["error_code"] == "ERR_001"
        assert body["message"] == "Registration not found"


class TestLinkRegistrations:
    def test_requires_user(self, api_client: TestClient) -> None:
        response = api_client.post("/api/registrations/link")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error_code"] == "ERR_005"

    def test_links_by_email(
        self, api_client: TestClient, pending_registration: dict[str, Any]
    ) -> None:
        response = api_client.post(
            "/api/registrations/link",
            headers={"x-user-sub": "user-1", "x-user-email": "ADA@example.com"},
        )

        assert response.status_code == status.HTTP_200_OK
        registrations = response.json()["registrations"]
        assert [r["registrationId"] for r in registrations] == ["42"]


class TestHealth:
    def test_health(self, api_client: TestClient) -> None:
        response = api_client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_correlation_id_echoed(self, api_client: TestClient) -> None:
        response = api_client.get("/api/ping", headers={"X-Correlation-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"
