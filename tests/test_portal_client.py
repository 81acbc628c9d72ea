"""Tests for the DevPro portal and Chrono HTTP clients."""

import json
from datetime import date

import pytest
import requests

from core.chrono_client import ChronoClient
from core.errors import ApiError, ChronoError
from core.portal_client import PortalClient, TokenStore, parse_logged_hours, parse_worklogs
from models.portal import WorklogPayload

NORMAL_VIEW = {
    "pageList": [
        {
            "detailsByDates": [
                {
                    "date": "2025-11-03T00:00:00",
                    "loggedHours": 8.0,
                    "worklogsDetails": [
                        {
                            "uniqueId": "w-1",
                            "projectUniqueId": "p-acme",
                            "projectShortName": "ACME",
                            "taskTitle": "Feature work",
                            "billability": "Billable",
                            "loggedHours": 6.0,
                        },
                        {
                            "uniqueId": "w-2",
                            "projectUniqueId": "p-internal",
                            "projectShortName": "INTERNAL",
                            "taskTitle": "Sync",
                            "billability": "Non-Billable",
                            "loggedHours": 2.0,
                        },
                    ],
                },
                {"date": "2025-11-04T00:00:00", "loggedHours": 0.0, "worklogsDetails": []},
            ]
        }
    ]
}


def make_response(status=200, body=None, text=""):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body).encode() if body is not None else text.encode()
    return response


class FakeSession:
    """Replays canned responses and records each request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self):
        pass


class FakeTokenStore:
    def __init__(self, tokens=("t-1",), refreshable=True):
        self.tokens = list(tokens)
        self.refreshable = refreshable
        self.refreshes = 0

    def get(self):
        return self.tokens[0]

    def refresh(self):
        self.refreshes += 1
        if not self.refreshable or len(self.tokens) < 2:
            return None
        self.tokens.pop(0)
        return self.tokens[0]


def portal_with(*responses, token_store=None):
    client = PortalClient(token_store=token_store or FakeTokenStore(), base_url="https://portal.test/api/")
    client.session = FakeSession(*responses)
    return client


# =============================================================================
# PORTAL CLIENT
# =============================================================================


def test_requests_carry_bearer_token():
    client = portal_with(make_response(body={"uniqueId": "u-1", "fullName": "Test User"}))

    user = client.get_current_user()

    assert user.unique_id == "u-1"
    method, url, kwargs = client.session.requests[0]
    assert (method, url) == ("GET", "https://portal.test/api/contact/currentUser")
    assert kwargs["headers"]["Authorization"] == "Bearer t-1"


def test_auth_failure_refreshes_and_retries_once():
    store = FakeTokenStore(tokens=("old", "new"))
    client = portal_with(make_response(401), make_response(body={"uniqueId": "u-1"}), token_store=store)

    client.get_current_user()

    assert store.refreshes == 1
    tokens = [kwargs["headers"]["Authorization"] for _, _, kwargs in client.session.requests]
    assert tokens == ["Bearer old", "Bearer new"]


def test_second_auth_failure_raises():
    store = FakeTokenStore(tokens=("old", "new"))
    client = portal_with(make_response(401), make_response(403), token_store=store)

    with pytest.raises(ApiError) as exc:
        client.get_current_user()

    assert exc.value.status_code == 403
    assert store.refreshes == 1


def test_no_retry_without_refresh():
    store = FakeTokenStore(refreshable=False)
    client = portal_with(make_response(401), token_store=store)

    with pytest.raises(ApiError) as exc:
        client.get_current_user()

    assert exc.value.status_code == 401
    assert len(client.session.requests) == 1


def test_server_error_includes_body():
    client = portal_with(make_response(500, text="boom"))

    with pytest.raises(ApiError) as exc:
        client.get_assigned_projects("u-1", date(2025, 11, 1))

    assert exc.value.status_code == 500
    assert "Server error (500): boom" in str(exc.value)


def test_assigned_projects():
    body = {"projects": [{"uniqueId": "p-acme", "shortName": "ACME", "isFavorite": True}]}
    client = portal_with(make_response(body=body))

    [project] = client.get_assigned_projects("u-1", date(2025, 11, 1))

    assert project.short_name == "ACME" and project.is_favorite
    _, url, kwargs = client.session.requests[0]
    assert url.endswith("/contact/u-1/assignedProjectsOnDate")
    assert kwargs["params"] == {"dateFrom": "2025-11-01"}


def test_create_sends_payload_with_idempotency_key():
    client = portal_with(make_response(body={}), make_response(body={}))
    payload = WorklogPayload("2025-11-03", "p-acme", "Feature work", "Billable", 6.0, expenseType="None")

    assert client.create_worklog(payload)
    assert client.create_worklog(payload)

    (_, url, first), (_, _, second) = client.session.requests
    assert url.endswith("/worklog/create")
    assert first["json"] == {
        "worklogDate": "2025-11-03",
        "projectUniqueId": "p-acme",
        "taskTitle": "Feature work",
        "billability": "Billable",
        "duration": 6.0,
        "expenseType": "None",
    }
    assert first["headers"]["IdempotencyKey"] != second["headers"]["IdempotencyKey"]


def test_delete_has_no_idempotency_key():
    client = portal_with(make_response(body={}))

    assert client.delete_worklog("w-1")

    method, url, kwargs = client.session.requests[0]
    assert (method, url) == ("DELETE", "https://portal.test/api/worklog/w-1")
    assert "IdempotencyKey" not in kwargs["headers"]


def test_parse_normal_view():
    worklogs = parse_worklogs(NORMAL_VIEW)

    assert [(w.unique_id, w.date, w.logged_hours) for w in worklogs] == [
        ("w-1", date(2025, 11, 3), 6.0),
        ("w-2", date(2025, 11, 3), 2.0),
    ]
    assert parse_logged_hours(NORMAL_VIEW) == {date(2025, 11, 3): 8.0, date(2025, 11, 4): 0.0}
    assert parse_worklogs({}) == []


# =============================================================================
# TOKEN STORE
# =============================================================================


def test_token_file_wins_over_env(tmp_path):
    token_path = tmp_path / ".tt-token"
    token_path.write_text("from-file\n", encoding="utf-8")

    assert TokenStore(token_path, env_token="from-env").get() == "from-file"


def test_missing_token_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("TT_TOKEN", raising=False)
    store = TokenStore(tmp_path / "missing", env_token="", auth_command="")

    with pytest.raises(ApiError) as exc:
        store.get()

    assert exc.value.status_code == 401


# =============================================================================
# CHRONO CLIENT
# =============================================================================


def test_chrono_entries():
    client = ChronoClient("http://chrono.test/")
    client.session = FakeSession(make_response(body=[
        {
            "id": 1,
            "project": {"name": "Acme DevPro - Work"},
            "description": "Feature work",
            "start_time": "2025-11-03T09:00:00",
            "duration": 3600,
        }
    ]))

    [entry] = client.get_time_entries(date(2025, 11, 3), date(2025, 11, 4))

    assert entry.project_name == "Acme DevPro - Work"
    _, url, kwargs = client.session.requests[0]
    assert url == "http://chrono.test/api/time-entries"
    assert kwargs["params"] == {"start_date": "2025-11-03", "end_date": "2025-11-04"}


def test_chrono_error_status():
    client = ChronoClient("http://chrono.test")
    client.session = FakeSession(make_response(500, text="down"))

    with pytest.raises(ChronoError) as exc:
        client.get_time_entries(date(2025, 11, 3), date(2025, 11, 3))

    assert "Chrono API error (500)" in str(exc.value)


def test_chrono_unreachable():
    class Unreachable(FakeSession):
        def get(self, url, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

    client = ChronoClient("http://chrono.test")
    client.session = Unreachable()

    with pytest.raises(ChronoError) as exc:
        client.get_time_entries(date(2025, 11, 3), date(2025, 11, 3))

    assert "Is Chrono running" in str(exc.value)
