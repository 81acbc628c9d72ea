"""
Meeting classification oracles.

An oracle answers whether an entry description refers to a calendar event.
The normalizer only sees the MeetingOracle protocol; concrete lookups (an
Obsidian knowledge base, the Microsoft 365 calendar) live behind it.
"""

from datetime import date
from pathlib import Path
from typing import Protocol

from core.config import CALENDAR_EVENT_MARKER, CALENDAR_USER, KNOWLEDGE_BASE_DIR


class MeetingOracle(Protocol):
    def is_calendar_event_note(self, description: str) -> bool: ...


class KnowledgeBaseOracle:
    """
    Looks for `<vault>/<description>.md` containing the calendar-event marker.

    Calendar sync writes one note per event, so a matching note means the
    Chrono entry was logged against a meeting.
    """

    def __init__(self, vault_dir: Path, marker: str = CALENDAR_EVENT_MARKER):
        self.vault_dir = Path(vault_dir)
        self.marker = marker

    def is_calendar_event_note(self, description: str) -> bool:
        if not description or "/" in description:
            return False
        note = self.vault_dir / f"{description}.md"
        if not note.is_file():
            return False
        return self.marker in note.read_text(encoding="utf-8", errors="ignore")


class CompositeOracle:
    """True when any of the wrapped oracles says so."""

    def __init__(self, oracles: list[MeetingOracle]):
        self.oracles = oracles

    def is_calendar_event_note(self, description: str) -> bool:
        return any(oracle.is_calendar_event_note(description) for oracle in self.oracles)


def build_meeting_oracle(date_from: date, date_to: date) -> MeetingOracle | None:
    """Oracle from whatever is configured: the knowledge base, the M365 calendar, both or neither."""
    oracles: list[MeetingOracle] = []
    if KNOWLEDGE_BASE_DIR:
        oracles.append(KnowledgeBaseOracle(Path(KNOWLEDGE_BASE_DIR).expanduser()))
    if CALENDAR_USER:
        from core.graph_client import is_graph_configured
        from services.calendar import CalendarMeetingOracle

        if is_graph_configured():
            oracles.append(CalendarMeetingOracle(CALENDAR_USER, date_from, date_to))

    if not oracles:
        return None
    if len(oracles) == 1:
        return oracles[0]
    return CompositeOracle(oracles)


def is_calendar_event(oracle: MeetingOracle | None, description: str) -> bool:
    """Ask the oracle; an absent or failing oracle means "not a meeting"."""
    if oracle is None or not description:
        return False
    try:
        return bool(oracle.is_calendar_event_note(description))
    except Exception as e:
        print(f"  Meeting lookup failed for '{description}': {e}")
        return False
