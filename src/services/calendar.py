"""
Calendar event lookup from MS Graph, used as a meeting oracle.
"""

import asyncio
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from core.config import TITLE_DATE_PATTERN
from core.graph_client import get_graph_client

_DATE_SUFFIX = re.compile(TITLE_DATE_PATTERN)


def normalize_subject(text: str) -> str:
    """Lowercased subject without the trailing ', Mon D YYYY' stamp."""
    return _DATE_SUFFIX.sub("", text.strip()).lower()


async def fetch_event_subjects(user_id: str, start_date: date, end_date: date) -> set[str]:
    """
    Fetch subjects of all events in the user's default calendar within date range.

    Follows @odata.nextLink pagination.
    """
    from msgraph.generated.users.item.calendar.events.events_request_builder import (
        EventsRequestBuilder,
    )

    graph = get_graph_client()

    start_dt = datetime.combine(start_date, datetime.min.time()).replace(tzinfo=ZoneInfo("UTC"))
    # End date should include the full day
    end_dt = datetime.combine(end_date + timedelta(days=1), datetime.min.time()).replace(
        tzinfo=ZoneInfo("UTC")
    )
    start_str = start_dt.strftime("%Y-%m-%dT%H:%M:%SZ")
    end_str = end_dt.strftime("%Y-%m-%dT%H:%M:%SZ")

    query_params = EventsRequestBuilder.EventsRequestBuilderGetQueryParameters(
        filter=f"start/dateTime ge '{start_str}' and start/dateTime lt '{end_str}'",
        select=["subject"],
        top=100,
    )
    config = EventsRequestBuilder.EventsRequestBuilderGetRequestConfiguration(
        query_parameters=query_params
    )

    events_builder = graph.users.by_user_id(user_id).calendar.events
    response = await events_builder.get(request_configuration=config)

    subjects = set()
    while response:
        for event in response.value or []:
            if event.subject:
                subjects.add(normalize_subject(event.subject))
        if not response.odata_next_link:
            break
        response = await events_builder.with_url(response.odata_next_link).get()

    return subjects


class CalendarMeetingOracle:
    """
    A description is a meeting when it matches an event subject in the user's calendar.

    Subjects are fetched once, on first use, for the whole range. A failed
    fetch is reported and treated as an empty calendar.
    """

    def __init__(self, user_id: str, start_date: date, end_date: date):
        self.user_id = user_id
        self.start_date = start_date
        self.end_date = end_date
        self._subjects: set[str] | None = None

    @property
    def subjects(self) -> set[str]:
        if self._subjects is None:
            try:
                self._subjects = asyncio.run(
                    fetch_event_subjects(self.user_id, self.start_date, self.end_date)
                )
                print(f"  Loaded {len(self._subjects)} calendar event subject(s) for {self.user_id}")
            except Exception as e:
                print(f"✗ Calendar lookup failed for {self.user_id}: {e}")
                self._subjects = set()
        return self._subjects

    def is_calendar_event_note(self, description: str) -> bool:
        return normalize_subject(description) in self.subjects
