"""Authentication dependencies for API routes.

Two caller kinds exist:
- Internal callers (scheduled jobs, the web app's server side) present a
  bearer token compared against the internal API token secret.
- Signed-in users are authenticated by the API Gateway JWT authorizer,
  which forwards the ``x-user-sub`` and ``x-user-email`` claims as headers.
"""

import hmac

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from bootcamp.config import Settings
from bootcamp.models.errors import BootcampError, ErrorCode
from bootcamp.services.ssm_service import SSMService
from bootcamp_api.dependencies import get_app_settings, get_ssm

_bearer = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Claims of the signed-in user forwarded by the authorizer."""

    user_id: str
    email: str


def require_internal_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_app_settings),
    ssm: SSMService = Depends(get_ssm),
) -> None:
    """Reject requests without the internal API bearer token."""
    if credentials is None:
        raise BootcampError(ErrorCode.UNAUTHORIZED)

    expected = ssm.get_secret("INTERNAL_API_TOKEN", f"{settings.ssm_prefix}/internal_api_token")
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise BootcampError(ErrorCode.UNAUTHORIZED)


def require_user(request: Request) -> AuthenticatedUser:
    """Return the signed-in user, or raise UNAUTHORIZED."""
    user_id = request.headers.get("x-user-sub")
    email = request.headers.get("x-user-email")
    if not user_id or not email:
        raise BootcampError(ErrorCode.UNAUTHORIZED)
    return AuthenticatedUser(user_id=user_id, email=email.strip().lower())
