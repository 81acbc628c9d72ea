"""Tests for filler generation on meeting-only days."""

import random
from dataclasses import replace
from datetime import date

from conftest import MEETING_PROJECT
from models.config import Filler
from models.entries import NormalizedAggregate
from services.filler_budget import FillerKey, get_billing_period
from services.fillers import generate_fillers

DAY = date(2025, 11, 10)
DOCS = Filler("INTERNAL", "Documentation", "Non-Billable", 0.5, 2.0)
REVIEW = Filler("INTERNAL", "Code review", "Non-Billable", 0.5, 2.0, max_hours_per_period=4.0)


def meeting(make_aggregate, devpro_project="INTERNAL", hours=2.0):
    agg = make_aggregate(devpro_project, hours, day=DAY, chrono_project=MEETING_PROJECT)
    return NormalizedAggregate(agg, hours, is_meeting=True, is_fixed=True)


def work(make_aggregate, hours=4.0):
    agg = make_aggregate("ACME", hours, day=DAY)
    return NormalizedAggregate(agg, hours, is_meeting=False, is_fixed=False)


def test_no_filler_when_project_absent(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate, devpro_project="ACME")]

    assert generate_fillers(normalized, [DOCS], settle_config, rng=random.Random(1)) == []


def test_single_filler_within_its_range(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]

    fillers = generate_fillers(normalized, [DOCS], settle_config, rng=random.Random(1))

    assert len(fillers) == 1
    filler = fillers[0]
    assert filler.date == DAY
    assert filler.task_title == "Documentation"
    assert 0.5 <= filler.hours <= 2.0
    assert (filler.hours / 0.25).is_integer()


def test_fillers_are_distinct_and_within_synthetic_cap(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]

    for seed in range(20):
        fillers = generate_fillers(normalized, [DOCS, REVIEW], settle_config, rng=random.Random(seed))

        titles = [f.task_title for f in fillers]
        assert len(titles) == len(set(titles))
        total = sum(f.hours for f in fillers)
        assert total <= settle_config.max_synthetic_hours
        assert 2.0 + total <= settle_config.target_hours


def test_no_fillers_on_days_with_work(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate), work(make_aggregate)]

    assert generate_fillers(normalized, [DOCS], settle_config, rng=random.Random(1)) == []


def test_no_fillers_when_meetings_fill_the_day(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate, hours=8.0)]

    assert generate_fillers(normalized, [DOCS], settle_config, rng=random.Random(1)) == []


def test_gap_below_increment_gets_nothing(make_aggregate, settle_config):
    config = replace(settle_config, max_synthetic_hours=0.2)
    normalized = [meeting(make_aggregate)]

    assert generate_fillers(normalized, [DOCS], config, rng=random.Random(1)) == []


def test_exhausted_budget_blocks_filler(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]
    period_budgets = {get_billing_period(DAY): {FillerKey("INTERNAL", "Code review"): 0.0}}

    fillers = generate_fillers(normalized, [REVIEW], settle_config, period_budgets, random.Random(1))

    assert fillers == []


def test_budget_of_one_increment_allows_one_increment(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]
    period = get_billing_period(DAY)
    period_budgets = {period: {FillerKey("INTERNAL", "Code review"): 0.25}}

    fillers = generate_fillers(normalized, [REVIEW], settle_config, period_budgets, random.Random(1))

    assert [f.hours for f in fillers] == [0.25]
    assert period_budgets[period][FillerKey("INTERNAL", "Code review")] == 0.0


def test_budget_limits_and_is_consumed(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]
    period = get_billing_period(DAY)
    period_budgets = {period: {FillerKey("INTERNAL", "Code review"): 0.75}}

    fillers = generate_fillers(normalized, [REVIEW], settle_config, period_budgets, random.Random(3))

    assert len(fillers) == 1
    assert fillers[0].hours in (0.5, 0.75)
    remaining = period_budgets[period][FillerKey("INTERNAL", "Code review")]
    assert remaining == 0.75 - fillers[0].hours


def test_budget_is_shared_across_days_of_a_period(make_aggregate, settle_config):
    first = meeting(make_aggregate)
    second = NormalizedAggregate(
        replace(first.aggregate, date=date(2025, 11, 11)), 2.0, is_meeting=True, is_fixed=True
    )
    period = get_billing_period(DAY)
    period_budgets = {period: {FillerKey("INTERNAL", "Code review"): 2.0}}

    fillers = generate_fillers([first, second], [REVIEW], settle_config, period_budgets, random.Random(5))

    assert sum(f.hours for f in fillers) <= 2.0
    assert period_budgets[period][FillerKey("INTERNAL", "Code review")] >= 0.0


def test_same_seed_same_fillers(make_aggregate, settle_config):
    normalized = [meeting(make_aggregate)]

    first = generate_fillers(normalized, [DOCS, REVIEW], settle_config, rng=random.Random(42))
    second = generate_fillers(normalized, [DOCS, REVIEW], settle_config, rng=random.Random(42))

    assert first == second
