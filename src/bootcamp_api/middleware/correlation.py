"""Per-request correlation IDs.

The ID comes from the caller's ``X-Correlation-ID`` header, else from the
Lambda request ID that Mangum places in the ASGI scope, else a new UUID. It
is bound for the duration of the request and echoed on the response.
"""

from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from bootcamp.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


def _lambda_request_id(request: Request) -> str | None:
    context: Any = request.scope.get("aws.context")
    return getattr(context, "aws_request_id", None)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER) or _lambda_request_id(request)
        )
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
