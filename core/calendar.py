# =============================================================================
# core/calendar.py  —  Calendar operations
# =============================================================================

import logging
from typing import Optional

from core.executor import BatchExecutor
from core.models import CALENDARS_CAPABILITY
from core.recipes import get_all, get_records, new_batch, query_then_get
from core.resolver import not_found_error, resolve

log = logging.getLogger(__name__)

CALENDARS = (CALENDARS_CAPABILITY,)

EVENT_PROPERTIES = ["id", "title", "description", "start", "end", "location", "participants"]
SOONEST_FIRST = [{"property": "start", "isAscending": True}]


class CalendarOperations:
    """Calendars and events over a shared executor."""

    def __init__(self, executor: BatchExecutor):
        self.executor = executor

    def list_calendars(self) -> list[dict]:
        return get_all(self.executor, "Calendar", CALENDARS)

    def list_events(self, calendar_id: Optional[str] = None, limit: int = 50) -> list[dict]:
        return query_then_get(
            self.executor, "CalendarEvent", CALENDARS,
            filter={"inCalendar": calendar_id} if calendar_id else None,
            sort=SOONEST_FIRST,
            limit=limit,
            properties=EVENT_PROPERTIES,
        )

    def get_event(self, event_id: str) -> dict:
        records = get_records(self.executor, "CalendarEvent", CALENDARS, [event_id])
        if not records:
            raise not_found_error(event_id, "records")
        return records[0]

    def create_event(
        self,
        calendar_id: str,
        title: str,
        start: str,
        end: str,
        description: str = "",
        location: str = "",
        participants: Optional[list[dict]] = None,
    ) -> str:
        """Create one event and return its server id.

        `start` and `end` are ISO 8601 strings, passed through unchanged.
        """
        event = {
            "calendarId": calendar_id,
            "title": title,
            "description": description or "",
            "start": start,
            "end": end,
            "location": location or "",
            "participants": list(participants or []),
        }
        builder = new_batch(self.executor, *CALENDARS)
        builder.add("CalendarEvent/set", {"create": {"newEvent": event}}, "createEvent")

        response = self.executor.execute(builder.build())
        event_id = resolve(response, "createEvent", "created/newEvent/id", targets=["newEvent"])
        log.info("Created calendar event %s in %s", event_id, calendar_id)
        return event_id
