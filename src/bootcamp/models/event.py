"""Event model for bootcamp sessions."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import MeetingType


class Event(BaseModel):
    """A bootcamp event people can register for.

    Read-mostly reference data; the payment flow only reads price and
    meeting details.
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(..., description="Unique event ID")
    name: str = Field(..., description="Event title")
    price: Decimal = Field(..., ge=0, description="Price in major currency units")
    start_date: datetime | None = Field(default=None, description="Event start")
    meeting_link: str | None = Field(default=None, description="Online meeting URL")
    meeting_type: MeetingType | None = None
    instructor_name: str | None = None
