from datetime import date

import pytest

from time_accountability.config import ReconciliationConfig
from time_accountability.metrics import (
    build_day,
    compute_metrics,
    estimated_cost,
    productivity_ratio,
    summarize_people,
    summarize_person,
    unaccounted_hours,
)
from time_accountability.schema import PersonIdentity

MARIA = PersonIdentity("Maria G", "housekeeping", task_name="Maria G", clock_name="Maria Gonzalez")


def test_unaccounted_hours_never_negative():
    assert unaccounted_hours(8.0, 0.75) == 7.25
    assert unaccounted_hours(2.0, 5.0) == 0.0


def test_productivity_ratio_rules():
    assert productivity_ratio(8.0, 0.75) == 9
    assert productivity_ratio(0.0, 1.5) == 100
    assert productivity_ratio(0.0, 0.0) == 0


def test_productivity_ratio_rounds_half_up():
    assert productivity_ratio(8.0, 1.0) == 13


def test_productivity_ratio_is_not_clamped():
    assert productivity_ratio(4.0, 5.0) == 125


def test_build_day_sets_flag_for_full_day_with_little_task_time():
    day = build_day(MARIA, date(2024, 1, 5), clocked_hours=8.0, task_hours=0.75, tasks_completed=1)
    assert day.unaccounted_hours == 7.25
    assert day.coverage == 9
    assert day.flagged is True


def test_build_day_flag_uses_configured_thresholds():
    config = ReconciliationConfig(flag_min_clocked_hours=6.0)
    day = build_day(MARIA, date(2024, 1, 5), clocked_hours=7.0, task_hours=1.0, tasks_completed=1, config=config)
    assert day.flagged is True
    default = build_day(MARIA, date(2024, 1, 5), clocked_hours=7.0, task_hours=1.0, tasks_completed=1)
    assert default.flagged is False


def test_person_ratio_is_ratio_of_sums():
    days = [
        build_day(MARIA, date(2024, 1, 5), clocked_hours=1.0, task_hours=1.0, tasks_completed=1),
        build_day(MARIA, date(2024, 1, 6), clocked_hours=9.0, task_hours=0.0, tasks_completed=0),
    ]
    summary = summarize_person(MARIA, days)
    assert summary.productivity_ratio == round(1.0 / 10.0 * 100)
    assert summary.unaccounted_hours == 9.0
    assert summary.estimated_cost == pytest.approx(9.0 * 18.0)
    assert [d.date for d in summary.days] == [date(2024, 1, 6), date(2024, 1, 5)]


def test_estimated_cost_uses_rate():
    assert estimated_cost(2.5, 20.0) == 50.0


def test_summarize_people_orders_by_unaccounted():
    other = PersonIdentity("Lucia Perez", "housekeeping", task_name="Lucia Perez")
    days = [
        build_day(MARIA, date(2024, 1, 5), clocked_hours=8.0, task_hours=0.75, tasks_completed=1),
        build_day(other, date(2024, 1, 5), clocked_hours=0.0, task_hours=2.0, tasks_completed=1),
    ]
    people = summarize_people(days, ReconciliationConfig(hourly_rate=20.0))
    assert [p.person.display_name for p in people] == ["Maria G", "Lucia Perez"]
    assert people[0].estimated_cost == pytest.approx(7.25 * 20.0)
    assert people[1].productivity_ratio == 100


def test_compute_metrics_empty_and_totals():
    assert compute_metrics([])["people"] == 0
    days = [
        build_day(MARIA, date(2024, 1, 5), clocked_hours=8.0, task_hours=2.0, tasks_completed=2),
        build_day(MARIA, date(2024, 1, 6), clocked_hours=8.0, task_hours=0.5, tasks_completed=1),
    ]
    totals = compute_metrics(days)
    assert totals["clocked_hours"] == 16.0
    assert totals["unaccounted_hours"] == 13.5
    assert totals["productivity_ratio"] == 16
    assert totals["flagged_days"] == 1
