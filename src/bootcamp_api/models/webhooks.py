"""API models for webhook endpoints."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Standard webhook response."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # success, duplicate, skipped, not_found, ignored
    message: str | None = None


class WebhookErrorResponse(BaseModel):
    """Body returned when a verified event could not be processed."""

    received: bool = False
    error: str
