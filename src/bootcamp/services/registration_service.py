"""Registration creation and account linking."""

from typing import TYPE_CHECKING

from bootcamp.models import (
    BootcampError,
    ErrorCode,
    PaymentStatus,
    Registration,
    RegistrationCreate,
)
from bootcamp.utils.logging import get_logger, log_registration_operation

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .event_store import EventStore
    from .registration_store import RegistrationStore

logger = get_logger(__name__)

# Preferred order when one email holds several registrations for an event
_STATUS_PRIORITY = {
    PaymentStatus.PAID: 0,
    PaymentStatus.PENDING: 1,
    PaymentStatus.FAILED: 2,
}


class RegistrationService:
    """Creates registrations before checkout and links them to accounts."""

    def __init__(
        self,
        store: "RegistrationStore",
        events: "EventStore",
        db: "DynamoDBService",
    ) -> None:
        self.store = store
        self.events = events
        self.db = db

    def lookup_auth_user_id(self, email: str) -> str | None:
        """Find the account ID registered with an email, if any."""
        user = self.db.get_user_by_email(email.strip().lower())
        if not user:
            return None
        return user.get("auth_user_id")

    def register_for_event(self, data: RegistrationCreate) -> tuple[Registration, bool]:
        """Create a pending registration unless one already exists.

        An existing registration for the same event and email is returned
        instead of creating a duplicate.

        Args:
            data: Registration details

        Returns:
            Tuple of (registration, created)

        Raises:
            BootcampError: EVENT_NOT_FOUND if the event does not exist
        """
        if self.events.get(data.event_id) is None:
            raise BootcampError(ErrorCode.EVENT_NOT_FOUND, details={"event_id": data.event_id})

        existing = [
            r for r in self.store.find_by_email(data.email) if r.event_id == data.event_id
        ]
        if existing:
            existing.sort(key=lambda r: _STATUS_PRIORITY[r.payment_status])
            registration = existing[0]
            log_registration_operation(
                logger,
                "register_for_event",
                registration_id=registration.registration_id,
                event_id=data.event_id,
                status=registration.payment_status.value,
                result="existing",
            )
            return registration, False

        auth_user_id = data.auth_user_id or self.lookup_auth_user_id(data.email)
        registration = self.store.create(
            data.model_copy(update={"auth_user_id": auth_user_id})
        )
        log_registration_operation(
            logger,
            "register_for_event",
            registration_id=registration.registration_id,
            event_id=data.event_id,
            status=registration.payment_status.value,
        )
        return registration, True

    def link_account(self, auth_user_id: str, email: str) -> list[Registration]:
        """Link every unlinked registration for email to the account.

        Args:
            auth_user_id: Account ID of the authenticated user
            email: The account's email address

        Returns:
            All registrations of the account after linking
        """
        for registration in self.store.find_by_email(email):
            if registration.auth_user_id is None:
                linked = self.store.link_auth_user(registration.registration_id, auth_user_id)
                if linked:
                    log_registration_operation(
                        logger,
                        "link_auth_user",
                        registration_id=registration.registration_id,
                        auth_user_id=auth_user_id,
                    )
        return self.list_for_account(auth_user_id, email)

    def list_for_account(self, auth_user_id: str, email: str) -> list[Registration]:
        """Registrations linked to the account or made with its email, newest first."""
        by_id: dict[str, Registration] = {}
        for registration in self.store.find_by_auth_user(auth_user_id):
            by_id[registration.registration_id] = registration
        for registration in self.store.find_by_email(email):
            by_id.setdefault(registration.registration_id, registration)
        return sorted(by_id.values(), key=lambda r: r.created_at, reverse=True)
