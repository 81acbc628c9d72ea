"""
Chrono time tracker client.
"""

from datetime import date

import requests

from core.config import CHRONO_API_URL, CHRONO_TIMEOUT_S
from core.errors import ChronoError
from models.entries import TimeEntry


class ChronoClient:
    """Reads time entries from the local Chrono API."""

    def __init__(self, base_url: str = CHRONO_API_URL, timeout: float = CHRONO_TIMEOUT_S):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def get_time_entries(self, start_date: date, end_date: date) -> list[TimeEntry]:
        """
        Fetch entries whose start falls in [start_date, end_date].

        Raises:
            ChronoError: If Chrono is unreachable or answers with an error
        """
        try:
            response = self.session.get(
                f"{self.base_url}/api/time-entries",
                params={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ChronoError(f"Chrono request failed: {e}\n\nIs Chrono running at {self.base_url}?") from e

        if not response.ok:
            raise ChronoError(
                f"Chrono API error ({response.status_code}): {response.text}\n\n"
                f"Is Chrono running at {self.base_url}?"
            )

        return [TimeEntry.from_api(item) for item in response.json()]

    def close(self):
        self.session.close()
