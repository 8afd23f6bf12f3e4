"""Registration endpoints.

Provides REST endpoints for:
- Registering for an event before checkout (public)
- Reading a registration's payment status (public, by ID)
- Linking registrations to the signed-in account (user auth)
"""

from fastapi import APIRouter, Depends, Response
from starlette.status import HTTP_200_OK, HTTP_201_CREATED

from bootcamp.models import BootcampError, ErrorCode, RegistrationCreate
from bootcamp.services.registration_service import RegistrationService
from bootcamp.services.registration_store import RegistrationStore
from bootcamp_api.dependencies import get_registration_service, get_registration_store
from bootcamp_api.models.common import ErrorResponse
from bootcamp_api.models.registrations import (
    RegistrationCreatedResponse,
    RegistrationListResponse,
    RegistrationRequest,
    RegistrationResponse,
)
from bootcamp_api.security import AuthenticatedUser, require_user

router = APIRouter(tags=["registrations"])


@router.post(
    "/registrations",
    summary="Register for an event",
    description="""
Create a pending registration for an event.

If the email is already registered for the event, the existing registration
is returned with `created: false` and status 200.
""",
    response_model=RegistrationCreatedResponse,
    status_code=HTTP_201_CREATED,
    responses={
        200: {"description": "Existing registration", "model": RegistrationCreatedResponse},
        404: {"description": "Event not found", "model": ErrorResponse},
    },
)
async def create_registration(
    body: RegistrationRequest,
    response: Response,
    registrations: RegistrationService = Depends(get_registration_service),
) -> RegistrationCreatedResponse:
    registration, created = registrations.register_for_event(
        RegistrationCreate(
            event_id=body.event_id,
            name=body.name.strip(),
            email=body.email.strip().lower(),
            auth_user_id=body.user_id,
        )
    )
    if not created:
        response.status_code = HTTP_200_OK
    return RegistrationCreatedResponse(
        created=created,
        registration=RegistrationResponse.from_registration(registration),
    )


@router.get(
    "/registrations/{registration_id}",
    summary="Get registration status",
    response_model=RegistrationResponse,
    responses={404: {"description": "Registration not found", "model": ErrorResponse}},
)
async def get_registration(
    registration_id: str,
    store: RegistrationStore = Depends(get_registration_store),
) -> RegistrationResponse:
    registration = store.get(registration_id)
    if registration is None:
        raise BootcampError(
            ErrorCode.REGISTRATION_NOT_FOUND,
            details={"registration_id": registration_id},
        )
    return RegistrationResponse.from_registration(registration)


@router.post(
    "/registrations/link",
    summary="Link registrations to the signed-in account",
    description="""
Links every registration made with the account's email that is not yet
linked to an account, then returns all of the account's registrations.

**Requires user authentication.**
""",
    response_model=RegistrationListResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
)
async def link_registrations(
    user: AuthenticatedUser = Depends(require_user),
    registrations: RegistrationService = Depends(get_registration_service),
) -> RegistrationListResponse:
    linked = registrations.link_account(user.user_id, user.email)
    return RegistrationListResponse(
        registrations=[RegistrationResponse.from_registration(r) for r in linked]
    )
