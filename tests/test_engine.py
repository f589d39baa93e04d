from datetime import date, datetime
from pathlib import Path

import pytest

from time_accountability.adapters.csv_adapter import parse_tasks, parse_timesheets
from time_accountability.config import ReconciliationConfig
from time_accountability.engine import reconcile
from time_accountability.schema import ClockEntry, TaskRecord

EXAMPLES = Path(__file__).resolve().parents[1] / "examples"
JANUARY = (date(2024, 1, 1), date(2024, 1, 31))


def sample_result(**kwargs):
    clock = parse_timesheets(str(EXAMPLES / "sample_timesheets.csv"))
    tasks = parse_tasks(str(EXAMPLES / "sample_tasks.csv"), str(EXAMPLES / "sample_assignments.csv"))
    return reconcile(
        clock.records,
        tasks.records,
        *JANUARY,
        clock_report=clock,
        task_report=tasks,
        **kwargs,
    )


def test_initial_matches_full_name_and_flags_the_day():
    clock = [ClockEntry("Maria Gonzalez", datetime(2024, 1, 5, 8), duration_hours=8.0, job="housekeeping")]
    tasks = [TaskRecord("t1", "housekeeping", datetime(2024, 1, 5, 10), 45, ("Maria G",))]
    result = reconcile(clock, tasks, *JANUARY)

    assert result.status == "ok"
    [day] = result.days
    assert day.person.display_name == "Maria G"
    assert day.person.clock_name == "Maria Gonzalez"
    assert day.clocked_hours == 8.0
    assert day.task_hours == 0.75
    assert day.unaccounted_hours == 7.25
    assert day.coverage == 9
    assert day.flagged is True
    assert result.exceptions == []


def test_long_shift_without_tasks():
    clock = [ClockEntry("John Doe", datetime(2024, 1, 5, 6), duration_hours=11.0)]
    result = reconcile(clock, [], *JANUARY)
    assert [(e.kind, e.severity) for e in result.exceptions] == [("long_day", "error"), ("no_tasks", "warning")]
    assert result.quality.no_task_data is True
    assert result.quality.clock_only_names == ["John Doe"]


def test_second_spelling_stays_a_separate_task_only_person():
    clock = [ClockEntry("Robert Smith", datetime(2024, 1, 6, 9), duration_hours=6.0)]
    tasks = [
        TaskRecord("t1", "maintenance", datetime(2024, 1, 6, 10), 60, ("Robert Smith",)),
        TaskRecord("t2", "maintenance", datetime(2024, 1, 6, 11), 90, ("R. Smith",)),
    ]
    result = reconcile(clock, tasks, *JANUARY)
    days = {d.person.display_name: d for d in result.days}
    assert days["Robert Smith"].person.clock_name == "Robert Smith"
    assert days["Robert Smith"].task_hours == 1.0
    assert days["R. Smith"].person.clock_name is None
    assert days["R. Smith"].task_hours == 1.5
    assert days["R. Smith"].coverage == 100


def test_no_data_is_not_a_perfect_score():
    result = reconcile([], [], *JANUARY)
    assert result.status == "no_data"
    assert result.has_data is False
    assert result.people == []
    assert result.quality.messages


def test_rows_outside_range_do_not_count():
    clock = [ClockEntry("John Doe", datetime(2024, 2, 1, 8), duration_hours=8.0)]
    result = reconcile(clock, [], *JANUARY)
    assert result.status == "no_data"
    assert result.quality.clock_rows_out_of_range == 1


def test_task_only_person_is_fully_explained():
    tasks = [TaskRecord("t1", "housekeeping", datetime(2024, 1, 5, 10), 90, ("Lucia Perez",))]
    result = reconcile([], tasks, *JANUARY)
    [person] = result.people
    assert person.productivity_ratio == 100
    assert person.unaccounted_hours == 0.0
    assert result.quality.no_clock_data is True
    assert result.department_comparison == []


def test_invalid_range_and_min_hours():
    with pytest.raises(ValueError):
        reconcile([], [], date(2024, 2, 1), date(2024, 1, 1))
    with pytest.raises(ValueError):
        reconcile([], [], *JANUARY, min_clocked_hours=-1)


def test_timezone_moves_late_shift_to_previous_day():
    clock = [ClockEntry("Ann Lee", datetime.fromisoformat("2024-01-06T02:00:00+00:00"), duration_hours=4.0)]
    result = reconcile(clock, [], *JANUARY, config=ReconciliationConfig(timezone="America/New_York"))
    [day] = result.days
    assert day.date == date(2024, 1, 5)
    assert [(c["day"], c["hour"]) for c in result.heatmap] == [(5, 21)]


def test_result_is_deterministic_under_input_order():
    clock = [
        ClockEntry("Maria Gonzalez", datetime(2024, 1, 5, 8), duration_hours=0.1),
        ClockEntry("Maria Gonzalez", datetime(2024, 1, 5, 9), duration_hours=0.2),
        ClockEntry("Maria Gonzalez", datetime(2024, 1, 5, 10), duration_hours=0.3),
        ClockEntry("Maria Gonzalez", datetime(2024, 1, 5, 13), duration_hours=4.0),
    ]
    tasks = [TaskRecord("t1", "housekeeping", datetime(2024, 1, 5, 10), 30, ("Maria Gonzalez",))]
    forward = reconcile(clock, tasks, *JANUARY)
    backward = reconcile(list(reversed(clock)), tasks, *JANUARY)
    assert forward.days == backward.days
    assert forward.days[0].clock_ins[0] == datetime(2024, 1, 5, 8)
    assert forward.to_dict() == backward.to_dict()


def test_unusable_shift_is_skipped_and_counted():
    clock = [
        ClockEntry("John Doe", datetime(2024, 1, 5, 8), duration_hours=8.0),
        ClockEntry("John Doe", datetime(2024, 1, 6, 8)),
        ClockEntry("John Doe", datetime(2024, 1, 7, 8), clock_out=datetime(2024, 1, 7, 6)),
    ]
    result = reconcile(clock, [], *JANUARY)
    assert result.status == "ok"
    assert [d.date for d in result.days] == [date(2024, 1, 5)]
    assert result.quality.clock_rows_read == 3
    assert result.quality.clock_rows_skipped == 2
    assert any("negative duration" in m for m in result.quality.messages)


def test_unassigned_task_time_is_reported():
    clock = [ClockEntry("John Doe", datetime(2024, 1, 5, 8), duration_hours=8.0)]
    tasks = [TaskRecord("t1", "maintenance", datetime(2024, 1, 5, 10), 120, ())]
    result = reconcile(clock, tasks, *JANUARY)
    quality = result.quality
    assert quality.tasks_unassigned == 1
    assert quality.unassigned_task_hours == 2.0
    assert quality.no_task_data is False
    assert "No task data: showing clock-system data only" not in quality.messages
    report = result.to_dict()["data_quality"]
    assert report["tasks_unassigned"] == 1
    assert report["unassigned_task_hours"] == 2.0


def test_sample_data_quality():
    result = sample_result()
    quality = result.quality
    assert quality.clock_rows_read == 6
    assert quality.clock_rows_skipped == 1
    assert quality.task_rows_read == 7
    assert quality.task_rows_skipped == 1
    assert quality.assignment_rows_skipped == 0
    assert quality.orphan_assignments == 1
    assert quality.match_summary == "2 of 4 names matched"
    assert quality.clock_only_names == ["Dana Whitfield", "John Doe"]
    assert quality.task_only_names == ["Lucia Perez", "R. Smith"]


def test_sample_people_and_exceptions():
    result = sample_result()
    people = {p.person.display_name: p for p in result.people}
    maria = people["Maria G"]
    assert maria.person.clock_name == "Maria Gonzalez"
    assert maria.clocked_hours == 14.0
    assert maria.task_hours == 5.25
    assert maria.unaccounted_hours == 8.75
    assert maria.estimated_cost == pytest.approx(157.5)
    assert maria.productivity_ratio == 38
    assert [p.person.display_name for p in result.people][:2] == ["John Doe", "Maria G"]

    assert [(e.kind, e.person.display_name) for e in result.exceptions] == [
        ("long_day", "John Doe"),
        ("no_tasks", "Dana Whitfield"),
        ("no_tasks", "John Doe"),
        ("low_hours_tasks", "Robert Smith"),
    ]


def test_sample_rollups():
    result = sample_result()
    departments = {row["department"]: row for row in result.department_comparison}
    assert set(departments) == {"housekeeping", "inspection", "maintenance"}
    assert departments["maintenance"]["people"] == 2
    assert [row["period"] for row in result.trend] == ["2023-12-31", "2024-01-07"]
    assert result.trend[0]["productivity_ratio"] == 24
    assert result.totals["flagged_days"] == 2
    assert result.totals["people"] == 6


def test_department_filter_is_case_insensitive():
    result = sample_result(department="Housekeeping")
    assert sorted(p.person.display_name for p in result.people) == ["Lucia Perez", "Maria G"]


def test_min_clocked_hours_filters_people():
    result = sample_result(min_clocked_hours=5)
    assert sorted(p.person.display_name for p in result.people) == ["John Doe", "Maria G"]


def test_to_dict_reports_data_quality():
    report = sample_result().to_dict()
    assert report["status"] == "ok"
    assert report["data_quality"]["names_matched"] == "2 of 4 names matched"
    assert report["exceptions"][0] == {
        "type": "long_day",
        "name": "John Doe",
        "date": "2024-01-05",
        "detail": "11h clocked",
        "severity": "error",
    }
