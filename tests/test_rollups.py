from datetime import date, datetime

import numpy as np

from time_accountability.metrics import build_day
from time_accountability.rollups import (
    clock_in_heatmap,
    department_comparison,
    heatmap_cells,
    period_start,
    person_scatter,
    trend_series,
)
from time_accountability.schema import PersonIdentity

MARIA = PersonIdentity("Maria G", "housekeeping", task_name="Maria G", clock_name="Maria Gonzalez")
LUCIA = PersonIdentity("Lucia Perez", "housekeeping", task_name="Lucia Perez")
JOHN = PersonIdentity("John Doe", "maintenance", clock_name="John Doe")


def sample_days():
    return [
        build_day(MARIA, date(2024, 1, 5), 8.0, 0.75, 1, clock_ins=(datetime(2024, 1, 5, 7, 58),)),
        build_day(MARIA, date(2024, 1, 6), 6.0, 4.5, 2, clock_ins=(datetime(2024, 1, 6, 8, 2),)),
        build_day(LUCIA, date(2024, 1, 6), 0.0, 2.0, 1),
        build_day(JOHN, date(2024, 1, 7), 11.0, 0.0, 0, clock_ins=(datetime(2024, 1, 7, 6, 30),)),
    ]


def test_period_start_weeks_begin_on_sunday():
    assert period_start(date(2024, 1, 5)) == date(2023, 12, 31)
    assert period_start(date(2024, 1, 7)) == date(2024, 1, 7)
    assert period_start(date(2024, 1, 20), "monthly") == date(2024, 1, 1)


def test_department_comparison_skips_people_without_clocked_time():
    rows = {row["department"]: row for row in department_comparison(sample_days())}
    assert rows["housekeeping"]["people"] == 1
    assert rows["housekeeping"]["clocked_hours"] == 14.0
    assert rows["housekeeping"]["productivity_ratio"] == 38
    assert rows["maintenance"]["productivity_ratio"] == 0


def test_weekly_trend_buckets_by_sunday():
    series = trend_series(sample_days(), "weekly")
    assert [row["period"] for row in series] == ["2023-12-31", "2024-01-07"]
    assert series[0]["clocked_hours"] == 14.0
    assert series[1]["clocked_hours"] == 11.0


def test_monthly_trend_label():
    series = trend_series(sample_days(), "monthly")
    assert [row["period"] for row in series] == ["2024-01"]


def test_heatmap_counts_clock_ins_by_weekday_and_hour():
    grid = clock_in_heatmap(sample_days())
    assert grid.shape == (7, 24)
    assert int(np.sum(grid)) == 3
    assert grid[5, 7] == 1  # Friday
    assert grid[6, 8] == 1  # Saturday
    assert grid[0, 6] == 1  # Sunday


def test_heatmap_cells_lists_only_nonzero():
    cells = heatmap_cells(clock_in_heatmap(sample_days()))
    assert {(c["day_label"], c["hour"], c["count"]) for c in cells} == {
        ("Fri", 7, 1),
        ("Sat", 8, 1),
        ("Sun", 6, 1),
    }


def test_scatter_averages_over_clocked_days():
    points = {p["name"]: p for p in person_scatter(sample_days())}
    assert "Lucia Perez" not in points
    assert points["Maria G"]["avg_clocked_hours"] == 7.0
    assert points["John Doe"]["avg_task_hours"] == 0.0
