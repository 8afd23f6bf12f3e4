"""Email notifications for registrations, sent through Amazon SES.

Provider failures are returned as an unsuccessful NotificationResult instead
of being raised, so callers such as the webhook handler never fail a payment
update because an email could not be delivered.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bootcamp.config import Settings, get_settings
from bootcamp.models import (
    EmailLog,
    EmailType,
    NotificationResult,
    PaymentReminderData,
    RegistrationEmailData,
)
from bootcamp.utils.logging import get_logger, log_registration_operation

from .email_templates import (
    RenderedEmail,
    render_admin_registration_notice,
    render_payment_reminder,
    render_registration_confirmation,
)

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .registration_store import RegistrationStore

logger = get_logger(__name__)


class NotificationService:
    """Sends registration emails and records them in the email log."""

    EMAIL_LOGS_TABLE = "email-logs"

    def __init__(
        self,
        store: "RegistrationStore",
        db: "DynamoDBService",
        settings: Settings | None = None,
        *,
        ses_client: Any | None = None,
    ) -> None:
        """Initialize notification service.

        Args:
            store: Registration store used to mark emails as sent
            db: DynamoDB service for the email log
            settings: Runtime settings. Defaults to process-wide settings.
            ses_client: Optional boto3 SES client
        """
        self.store = store
        self.db = db
        self._settings = settings or get_settings()
        self._ses = ses_client

    def _get_ses(self) -> Any:
        if self._ses is None:
            self._ses = boto3.client("ses", region_name=self._settings.ses_region)
        return self._ses

    @property
    def source(self) -> str:
        """SES Source header, e.g. ``"AI Bootcamp (No Reply)" <no-reply@...>``."""
        return (
            f'"{self._settings.email_from_name} (No Reply)" '
            f"<{self._settings.email_from_address}>"
        )

    def _send(self, recipient: str, email: RenderedEmail) -> str:
        """Send one email and return the SES message ID."""
        response = self._get_ses().send_email(
            Source=self.source,
            Destination={"ToAddresses": [recipient]},
            Message={
                "Subject": {"Data": email.subject, "Charset": "UTF-8"},
                "Body": {
                    "Text": {"Data": email.text, "Charset": "UTF-8"},
                    "Html": {"Data": email.html, "Charset": "UTF-8"},
                },
            },
        )
        message_id: str = response["MessageId"]
        return message_id

    def send_registration_confirmation(
        self, data: RegistrationEmailData
    ) -> NotificationResult:
        """Send the registration confirmation and mark it as sent.

        Safe to call more than once: a repeated call sends another email and
        repeats the mark-sent write harmlessly.

        Args:
            data: Registration and event details for the template

        Returns:
            NotificationResult; success is False only when the email itself
            could not be sent, in which case email_sent is left unchanged.
        """
        rendered = render_registration_confirmation(data, self._settings.app_base_url)

        try:
            message_id = self._send(data.email, rendered)
        except (ClientError, BotoCoreError) as e:
            log_registration_operation(
                logger,
                "send_registration_confirmation",
                registration_id=data.registration_id,
                event_id=data.event_id,
                error=str(e),
            )
            return NotificationResult(
                success=False,
                message=f"Exception sending registration email: {e}",
                error=str(e),
            )

        log_registration_operation(
            logger,
            "send_registration_confirmation",
            registration_id=data.registration_id,
            event_id=data.event_id,
            message_id=message_id,
        )

        try:
            if not self.store.set_email_sent(data.registration_id):
                logger.warning(
                    "Confirmation sent for unknown registration %s", data.registration_id
                )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to mark email sent for registration %s: %s",
                data.registration_id,
                e,
            )

        self._write_email_log(
            EmailType.EVENT_REGISTRATION,
            registration_id=data.registration_id,
            event_id=data.event_id,
            event_title=data.event_title,
            event_date=data.event_date,
            recipient_email=data.email,
            recipient_name=data.name,
            message_id=message_id,
        )

        self._send_admin_copy(data)

        return NotificationResult(
            success=True,
            message="Registration email sent successfully",
            message_id=message_id,
        )

    def send_payment_reminder(self, data: PaymentReminderData) -> NotificationResult:
        """Send a payment reminder for an unpaid registration.

        Does not touch email_sent; only the email log records reminders.
        """
        rendered = render_payment_reminder(data, self._settings.app_base_url)

        try:
            message_id = self._send(data.email, rendered)
        except (ClientError, BotoCoreError) as e:
            log_registration_operation(
                logger,
                "send_payment_reminder",
                registration_id=data.registration_id,
                event_id=data.event_id,
                error=str(e),
            )
            return NotificationResult(
                success=False,
                message=f"Exception sending payment reminder: {e}",
                error=str(e),
            )

        log_registration_operation(
            logger,
            "send_payment_reminder",
            registration_id=data.registration_id,
            event_id=data.event_id,
            message_id=message_id,
        )

        self._write_email_log(
            EmailType.PAYMENT_REMINDER,
            registration_id=data.registration_id,
            event_id=data.event_id,
            event_title=data.event_title,
            event_date=data.event_date,
            recipient_email=data.email,
            recipient_name=data.name,
            message_id=message_id,
        )

        return NotificationResult(
            success=True,
            message="Payment reminder sent successfully",
            message_id=message_id,
        )

    def _send_admin_copy(self, data: RegistrationEmailData) -> None:
        admin_email = self._settings.admin_email
        if not admin_email:
            return
        try:
            message_id = self._send(admin_email, render_admin_registration_notice(data))
        except (ClientError, BotoCoreError) as e:
            # Admin copy never fails the operation
            logger.warning(
                "Admin notification failed for registration %s: %s",
                data.registration_id,
                e,
            )
            return

        logger.info("Admin notified of new registration at %s", admin_email)
        self._write_email_log(
            EmailType.ADMIN_NOTIFICATION,
            registration_id=data.registration_id,
            event_id=data.event_id,
            event_title=data.event_title,
            event_date=data.event_date,
            recipient_email=admin_email,
            recipient_name="Administrator",
            message_id=message_id,
        )

    def _write_email_log(
        self,
        email_type: EmailType,
        *,
        registration_id: str,
        event_id: str,
        event_title: str,
        event_date: dt.datetime | None,
        recipient_email: str,
        recipient_name: str,
        message_id: str | None,
    ) -> None:
        entry = EmailLog(
            log_id=f"EML-{uuid.uuid4().hex[:12].upper()}",
            email_type=email_type,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            related_event_id=event_id,
            related_registration_id=registration_id,
            event_title=event_title,
            event_date=event_date.isoformat() if event_date else None,
            sent_at=dt.datetime.now(dt.UTC),
            message_id=message_id,
        )

        item: dict[str, Any] = {
            "log_id": entry.log_id,
            "email_type": entry.email_type.value,
            "recipient_email": entry.recipient_email,
            "recipient_name": entry.recipient_name,
            "related_event_id": entry.related_event_id,
            # Key of the registration_id-index GSI
            "registration_id": entry.related_registration_id,
            "event_title": entry.event_title,
            "sent_at": entry.sent_at.isoformat(),
        }
        if entry.event_date:
            item["event_date"] = entry.event_date
        if entry.message_id:
            item["message_id"] = entry.message_id

        try:
            self.db.put_item(self.EMAIL_LOGS_TABLE, item)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to write email log for %s: %s", registration_id, e)

    def list_email_logs(self, registration_id: str) -> list[dict[str, Any]]:
        """List email log entries for a registration."""
        return self.db.query_by_gsi(
            self.EMAIL_LOGS_TABLE, "registration_id-index", "registration_id", registration_id
        )
