"""Notification endpoints for internal callers.

Provides endpoints for:
- Sending a registration confirmation email
- Sending a payment reminder for an unpaid registration

**Requires the internal API bearer token.**
"""

from fastapi import APIRouter, Depends

from bootcamp.models import (
    BootcampError,
    ErrorCode,
    MeetingType,
    PaymentReminderData,
    PaymentStatus,
    RegistrationEmailData,
)
from bootcamp.services.email_templates import display_name
from bootcamp.services.event_store import EventStore
from bootcamp.services.notification_service import NotificationService
from bootcamp.services.registration_store import RegistrationStore
from bootcamp_api.dependencies import (
    get_event_store,
    get_notification_service,
    get_registration_store,
)
from bootcamp_api.models.common import ErrorResponse
from bootcamp_api.models.notifications import (
    NotificationResponse,
    PaymentReminderRequest,
    RegistrationConfirmationRequest,
)
from bootcamp_api.security import require_internal_token

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_internal_token)],
)


@router.post(
    "/registration-confirmation",
    summary="Send registration confirmation",
    description="""
Sends the registration confirmation email, marks the registration's
`email_sent` flag and records the send in the email log. Unknown
registrations are rejected before anything is sent.

Provider failures are reported with `success: false` (status 200).
""",
    response_model=NotificationResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Registration not found", "model": ErrorResponse},
    },
)
async def send_registration_confirmation(
    body: RegistrationConfirmationRequest,
    store: RegistrationStore = Depends(get_registration_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    if store.get(body.registration_id) is None:
        raise BootcampError(
            ErrorCode.REGISTRATION_NOT_FOUND,
            details={"registration_id": body.registration_id},
        )

    email = body.email.strip().lower()
    result = notifications.send_registration_confirmation(
        RegistrationEmailData(
            registration_id=body.registration_id,
            event_id=body.event_id,
            event_title=body.event_title,
            event_date=body.event_date,
            name=display_name(body.name, email),
            email=email,
            meeting_link=body.meeting_link,
            meeting_type=MeetingType.parse(body.meeting_type),
        )
    )
    return NotificationResponse(**result.model_dump())


@router.post(
    "/payment-reminder",
    summary="Send payment reminder",
    description="""
Sends a payment reminder for a registration that is not yet paid. The event
title, date and instructor are read from the event record.
""",
    response_model=NotificationResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Registration or event not found", "model": ErrorResponse},
        409: {"description": "Registration already paid", "model": ErrorResponse},
    },
)
async def send_payment_reminder(
    body: PaymentReminderRequest,
    store: RegistrationStore = Depends(get_registration_store),
    events: EventStore = Depends(get_event_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    registration = store.get(body.registration_id)
    if registration is None:
        raise BootcampError(
            ErrorCode.REGISTRATION_NOT_FOUND,
            details={"registration_id": body.registration_id},
        )
    if registration.payment_status == PaymentStatus.PAID:
        raise BootcampError(
            ErrorCode.REGISTRATION_ALREADY_PAID,
            details={"registration_id": body.registration_id},
        )

    event = events.get(registration.event_id)
    if event is None:
        raise BootcampError(
            ErrorCode.EVENT_NOT_FOUND, details={"event_id": registration.event_id}
        )

    result = notifications.send_payment_reminder(
        PaymentReminderData(
            registration_id=registration.registration_id,
            event_id=registration.event_id,
            event_title=event.name,
            event_date=event.start_date,
            name=display_name(registration.name, registration.email),
            email=registration.email,
            instructor_name=event.instructor_name,
        )
    )
    return NotificationResponse(**result.model_dump())
