"""Read access to bootcamp events."""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from bootcamp.models import Event, MeetingType

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class EventStore:
    """Lookups in the events table."""

    TABLE = "events"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, event_id: str) -> Event | None:
        """Get an event by ID, or None if it does not exist."""
        item = self.db.get_item(self.TABLE, {"event_id": str(event_id)})
        return self._item_to_event(item) if item else None

    def _item_to_event(self, item: dict[str, Any]) -> Event:
        start_date = item.get("start_date")
        return Event(
            event_id=str(item["event_id"]),
            name=item.get("name") or item.get("title", ""),
            price=Decimal(str(item.get("price", 0))),
            start_date=dt.datetime.fromisoformat(start_date) if start_date else None,
            meeting_link=item.get("meeting_link"),
            meeting_type=MeetingType.parse(item.get("meeting_type")),
            instructor_name=item.get("instructor_name"),
        )
