"""Logging helpers for the registration backend.

Every record carries the correlation ID of the request (or webhook delivery)
that produced it, so one registration can be followed from checkout through
the Stripe webhook to the confirmation email.

Usage:
    from bootcamp.utils.logging import get_logger, log_registration_operation

    logger = get_logger(__name__)
    log_registration_operation(logger, "create_registration", registration_id="REG-1")
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"

# Upper bound for client-supplied IDs echoed back in headers and log lines
MAX_CORRELATION_ID_LENGTH = 128

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_WEBHOOK_RESULT_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "duplicate": logging.WARNING,
    "skipped": logging.WARNING,
    "not_found": logging.WARNING,
}


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context and return it.

    A missing, blank or oversized incoming ID is replaced by a fresh UUID.
    """
    cid = (correlation_id or "").strip()
    if not cid or len(cid) > MAX_CORRELATION_ID_LENGTH:
        cid = str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to every record passing through a logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Formats records as ``[<correlation id>] <message>``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id()
        record.correlation_id = cid or NO_CORRELATION_ID
        return f"[{record.correlation_id}] {super().format(record)}"


def configure_logging(level: str = "INFO") -> None:
    """Attach one StructuredFormatter handler to the root logger.

    Lambda reuses the process between invocations, so repeated calls must
    not stack handlers.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with the correlation filter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _present(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value not in (None, "")}


def _emit(
    logger: logging.Logger,
    level: int,
    headline: str,
    shown: dict[str, Any],
    context: dict[str, Any],
) -> None:
    parts = [headline, *(f"{key}={value}" for key, value in shown.items())]
    logger.log(level, " | ".join(parts), extra=context)


def log_registration_operation(
    logger: logging.Logger,
    operation: str,
    *,
    registration_id: str | None = None,
    event_id: str | None = None,
    checkout_session_id: str | None = None,
    amount: Any = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a registration, checkout or email step.

    Logged at ERROR when ``error`` is given, INFO otherwise. All fields are
    both appended to the message and attached as record attributes.

    Args:
        logger: Logger instance
        operation: Step name, e.g. "create_checkout_session"
        registration_id: Registration ID if known
        event_id: Bootcamp event ID if known
        checkout_session_id: Stripe Checkout Session ID if known
        amount: Amount in major units
        status: Payment status after the step
        error: Failure description
        **extra: Additional context fields
    """
    fields = _present(
        {
            "registration_id": registration_id,
            "event_id": event_id,
            "checkout_session_id": checkout_session_id,
            "amount": None if amount is None else str(amount),
            "status": status,
            "error": error,
            **extra,
        }
    )
    _emit(
        logger,
        logging.ERROR if error else logging.INFO,
        f"Registration operation: {operation}",
        fields,
        {"operation": operation, **fields},
    )


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    registration_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one stage of Stripe webhook processing.

    The level follows the result: ``error`` logs at ERROR; ``duplicate``,
    ``skipped`` and ``not_found`` at WARNING; anything else at INFO.
    """
    shown = _present(
        {"result": result, "registration": registration_id, "error": error}
    )
    context = _present(
        {
            "event_type": event_type,
            "event_id": event_id,
            "registration_id": registration_id,
            "result": result,
            "error": error,
            **extra,
        }
    )
    _emit(
        logger,
        _WEBHOOK_RESULT_LEVELS.get(result or "", logging.INFO),
        f"Webhook event: {event_type} ({event_id})",
        shown,
        context,
    )
