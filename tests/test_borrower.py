"""Tests for borrowing recent tasks onto short meeting-heavy days."""

from datetime import date

import pytest

from conftest import MEETING_PROJECT, OTHER_PROJECT, WORK_PROJECT
from models.entries import FillerEntry, NormalizedAggregate
from services.borrower import (
    borrow_for_meeting_only_days,
    clean_task_title,
    find_days_with_shortfall,
    rank_candidates,
)

DAY = date(2025, 11, 10)


@pytest.fixture
def meeting_day(make_aggregate):
    agg = make_aggregate("INTERNAL", 2.0, day=DAY, chrono_project=MEETING_PROJECT, descriptions=("Sync",))
    return [NormalizedAggregate(agg, 2.0, is_meeting=True, is_fixed=True)]


@pytest.fixture
def history(make_entry):
    return [
        make_entry(WORK_PROJECT, "Feature work", day=date(2025, 11, 4), hours=3.0),
        make_entry(WORK_PROJECT, "Feature work", day=date(2025, 11, 5), hours=2.0),
        make_entry(OTHER_PROJECT, "Bug fixing, Nov 6 2025", day=date(2025, 11, 6), hours=4.0),
    ]


class RecordingProvider:
    def __init__(self, entries=(), error=None):
        self.entries = list(entries)
        self.error = error
        self.calls = []

    def __call__(self, start, end):
        self.calls.append((start, end))
        if self.error:
            raise self.error
        return self.entries


def test_clean_task_title():
    assert clean_task_title("Sprint review - Acme DevPro - Work", WORK_PROJECT) == "Sprint review"
    assert clean_task_title("Sprint review, Dec 3 2025", WORK_PROJECT) == "Sprint review"
    assert clean_task_title("Release, notes", WORK_PROJECT) == "Release, notes"


def test_shortfall_only_on_meeting_heavy_days(make_aggregate, meeting_day, settle_config):
    work_day = date(2025, 11, 11)
    work = make_aggregate("ACME", 8.0, day=work_day)
    normalized = meeting_day + [NormalizedAggregate(work, 8.0, is_meeting=False, is_fixed=False)]

    assert find_days_with_shortfall(normalized, [], settle_config) == {DAY: 6.0}


def test_fillers_reduce_shortfall(meeting_day, settle_config):
    fillers = [FillerEntry(DAY, "INTERNAL", "Documentation", "Non-Billable", 5.875)]

    assert find_days_with_shortfall(meeting_day, fillers, settle_config) == {}


def test_work_heavy_day_is_not_short(make_aggregate, settle_config):
    meeting = make_aggregate("INTERNAL", 1.0, day=DAY, chrono_project=MEETING_PROJECT)
    work = make_aggregate("ACME", 3.0, day=DAY)
    normalized = [
        NormalizedAggregate(meeting, 1.0, is_meeting=True, is_fixed=True),
        NormalizedAggregate(work, 3.0, is_meeting=False, is_fixed=False),
    ]

    assert find_days_with_shortfall(normalized, [], settle_config) == {}


def test_rank_candidates_keeps_latest_source(make_aggregate):
    older = make_aggregate("ACME", 3.0, day=date(2025, 11, 4), descriptions=("Feature work",))
    newer = make_aggregate("ACME", 2.0, day=date(2025, 11, 5), descriptions=("Feature work",))
    other = make_aggregate("BETA", 4.0, day=date(2025, 11, 6), descriptions=("Bug fixing",))

    ranked = rank_candidates([older, newer, other])

    assert [task for task, _ in ranked] == ["Feature work", "Bug fixing"]
    assert ranked[0][1] is newer


def test_borrows_top_tasks_until_covered(meeting_day, history, settle_config):
    provider = RecordingProvider(history)

    borrowed = borrow_for_meeting_only_days(meeting_day, [], provider, settle_config)

    assert provider.calls == [(date(2025, 11, 3), date(2025, 11, 9))]
    assert [(b.devpro_project, b.task_title, b.hours, b.source_date) for b in borrowed] == [
        ("ACME", "Feature work", 2.0, date(2025, 11, 5)),
        ("BETA", "Bug fixing", 4.0, date(2025, 11, 6)),
    ]
    assert all(b.date == DAY for b in borrowed)
    assert borrowed[0].billability == "Billable"


def test_borrowing_stops_at_shortfall(meeting_day, make_entry, settle_config):
    provider = RecordingProvider([make_entry(WORK_PROJECT, "Big task", day=date(2025, 11, 7), hours=9.0)])

    borrowed = borrow_for_meeting_only_days(meeting_day, [], provider, settle_config)

    assert [b.hours for b in borrowed] == [6.0]


def test_history_failure_borrows_nothing(meeting_day, settle_config, capsys):
    provider = RecordingProvider(error=RuntimeError("Chrono unavailable"))

    assert borrow_for_meeting_only_days(meeting_day, [], provider, settle_config) == []
    assert "history unavailable" in capsys.readouterr().out


def test_unmapped_history_borrows_nothing(meeting_day, make_entry, settle_config):
    provider = RecordingProvider([make_entry("Gamma DevPro - Work", day=date(2025, 11, 7))])

    assert borrow_for_meeting_only_days(meeting_day, [], provider, settle_config) == []


def test_empty_history_borrows_nothing(meeting_day, settle_config, capsys):
    assert borrow_for_meeting_only_days(meeting_day, [], RecordingProvider(), settle_config) == []
    assert "no history" in capsys.readouterr().out


def test_no_short_days_skips_history(make_aggregate, settle_config):
    work = make_aggregate("ACME", 8.0, day=DAY)
    normalized = [NormalizedAggregate(work, 8.0, is_meeting=False, is_fixed=False)]
    provider = RecordingProvider()

    assert borrow_for_meeting_only_days(normalized, [], provider, settle_config) == []
    assert provider.calls == []
