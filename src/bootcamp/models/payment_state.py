"""Payment status transitions for registrations.

A registration starts ``pending`` and may move to ``paid`` or ``failed``. A
failed payment can still be paid later (the customer retries the card), but a
paid registration never becomes failed and nothing returns to pending.
Re-applying the current terminal status is allowed so webhook redeliveries are
idempotent.
"""

from .enums import PaymentStatus

ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.PAID}),
}


class InvalidPaymentTransition(Exception):
    """Raised when a payment status change is not allowed."""

    def __init__(self, current: PaymentStatus, target: PaymentStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot change payment status from {current.value} to {target.value}"
        )


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    """Check whether a registration may move from current to target."""
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: PaymentStatus, target: PaymentStatus) -> PaymentStatus:
    """Validate a payment status change.

    Args:
        current: Status currently stored on the registration
        target: Requested status

    Returns:
        The target status

    Raises:
        InvalidPaymentTransition: If the change is not allowed
    """
    if not can_transition(current, target):
        raise InvalidPaymentTransition(current, target)
    return target


def allowed_sources(target: PaymentStatus) -> list[PaymentStatus]:
    """List the statuses from which target can be reached.

    Used to build the conditional write that enforces transitions in the store.
    """
    return [
        status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    ]
