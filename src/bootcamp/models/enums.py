"""Enumerations for registration, payment and email entities."""

from enum import Enum


class PaymentStatus(str, Enum):
    """Payment status of a registration."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class EmailType(str, Enum):
    """Kinds of email recorded in the email log."""

    EVENT_REGISTRATION = "event_registration"
    PAYMENT_REMINDER = "payment_reminder"
    ADMIN_NOTIFICATION = "admin_notification"


class MeetingType(str, Enum):
    """Online meeting platforms an event can be hosted on."""

    ZOOM = "zoom"
    GOOGLE_MEET = "google_meet"
    TEAMS = "teams"
    ONLINE = "online"

    @classmethod
    def parse(cls, value: str | None) -> "MeetingType | None":
        """Parse a stored platform name; unknown platforms become ONLINE."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.ONLINE
