"""
DevPro time tracking portal client with lazy token handling.

Authentication failures (401/403) trigger one token refresh and one retry of
the same request; a second failure surfaces as ApiError.
"""

import os
import shlex
import subprocess
import uuid
from datetime import date
from pathlib import Path

import requests

from core.config import (
    TT_API_URL,
    TT_AUTH_COMMAND,
    TT_PAGE_SIZE,
    TT_TIMEOUT_S,
    TT_TOKEN,
    TT_TOKEN_PATH,
)
from core.errors import ApiError
from models.portal import CurrentUser, ExistingWorklog, Project, WorklogPayload

AUTH_STATUSES = {401, 403}


class TokenStore:
    """Bearer token from ~/.tt-token or TT_TOKEN, refreshed via TT_AUTH_COMMAND."""

    def __init__(
        self,
        token_path: Path = TT_TOKEN_PATH,
        env_token: str = TT_TOKEN,
        auth_command: str = TT_AUTH_COMMAND,
    ):
        self.token_path = Path(token_path)
        self.env_token = env_token
        self.auth_command = auth_command
        self._token: str | None = None

    def get(self) -> str:
        if self._token is None:
            self._token = self._read_token()
        if not self._token:
            self._token = self.refresh()
        if not self._token:
            raise ApiError(401, "No DevPro token found. Run the auth helper or set TT_TOKEN.")
        return self._token

    def refresh(self) -> str | None:
        """Run the auth command and re-read the token file. None if that is not possible."""
        if not self.auth_command:
            return None
        print("Refreshing DevPro token...")
        result = subprocess.run(shlex.split(self.auth_command), check=False)
        if result.returncode != 0:
            print(f"✗ Auth command exited with {result.returncode}")
            return None
        self._token = self._read_token()
        return self._token or None

    def _read_token(self) -> str:
        if self.token_path.exists():
            token = self.token_path.read_text(encoding="utf-8").strip()
            if token:
                return token
        return self.env_token or os.environ.get("TT_TOKEN", "")


class PortalClient:
    """Synchronous client for the parts of the portal API settle uses."""

    def __init__(
        self,
        token_store: TokenStore | None = None,
        base_url: str = TT_API_URL,
        timeout: float = TT_TIMEOUT_S,
    ):
        self.token_store = token_store or TokenStore()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, *, idempotent: bool = False, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        retried = False

        while True:
            headers = {"Authorization": f"Bearer {self.token_store.get()}"}
            if idempotent:
                headers["IdempotencyKey"] = str(uuid.uuid4())
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )

            if response.status_code in AUTH_STATUSES and not retried:
                retried = True
                if self.token_store.refresh():
                    continue
            check_status(response)
            return response

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_current_user(self) -> CurrentUser:
        return CurrentUser.from_api(self._request("GET", "/contact/currentUser").json())

    def get_assigned_projects(self, user_id: str, from_date: date | str) -> list[Project]:
        response = self._request(
            "GET",
            f"/contact/{user_id}/assignedProjectsOnDate",
            params={"dateFrom": str(from_date)},
        )
        return [Project.from_api(p) for p in response.json().get("projects", [])]

    def get_normal_view(self, period: date | str) -> dict:
        """Raw month view (per-day logged hours and worklogs) for the month of period."""
        response = self._request(
            "GET",
            "/timeTracking/normalView",
            params={
                "period": str(period),
                "pageInfo.pageIndex": 1,
                "pageInfo.pageSize": TT_PAGE_SIZE,
            },
        )
        return response.json()

    def get_existing_worklogs(self, period: date | str) -> list[ExistingWorklog]:
        return parse_worklogs(self.get_normal_view(period))

    def get_logged_hours_by_day(self, period: date | str) -> dict[date, float]:
        return parse_logged_hours(self.get_normal_view(period))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_worklog(self, payload: WorklogPayload) -> bool:
        response = self._request("POST", "/worklog/create", json=payload.to_json(), idempotent=True)
        return response.status_code == 200

    def update_worklog(self, payload: WorklogPayload) -> bool:
        response = self._request("POST", "/worklog/update", json=payload.to_json(), idempotent=True)
        return response.status_code == 200

    def delete_worklog(self, unique_id: str) -> bool:
        response = self._request("DELETE", f"/worklog/{unique_id}")
        return response.status_code == 200

    def close(self):
        self.session.close()


def check_status(response: requests.Response):
    """Raise ApiError for 4xx/5xx responses."""
    status = response.status_code
    if status == 401:
        raise ApiError(401, "Token expired or invalid. Please refresh your token.")
    if status == 403:
        raise ApiError(403, "Access denied.")
    if status == 404:
        raise ApiError(404, "Resource not found.")
    if 400 <= status < 500:
        raise ApiError(status, f"Client error ({status}): {response.text}")
    if status >= 500:
        raise ApiError(status, f"Server error ({status}): {response.text}")


def _iter_days(view: dict):
    for page in view.get("pageList", []):
        for day in page.get("detailsByDates", []):
            yield date.fromisoformat(day["date"][:10]), day


def parse_worklogs(view: dict) -> list[ExistingWorklog]:
    return [
        ExistingWorklog.from_api(worklog, day)
        for day, details in _iter_days(view)
        for worklog in details.get("worklogsDetails", [])
    ]


def parse_logged_hours(view: dict) -> dict[date, float]:
    return {day: float(details.get("loggedHours", 0.0)) for day, details in _iter_days(view)}
