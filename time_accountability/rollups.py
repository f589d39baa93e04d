"""Department, trend, heatmap and scatter views over reconciled person-days."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

import numpy as np

from time_accountability.metrics import productivity_ratio
from time_accountability.schema import DailyReconciliation, PersonIdentity

DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _clocked_people(days: Iterable[DailyReconciliation]) -> dict[PersonIdentity, list[DailyReconciliation]]:
    """Group days by person, keeping only people with any clocked time."""

    by_person: dict[PersonIdentity, list[DailyReconciliation]] = defaultdict(list)
    for day in days:
        by_person[day.person].append(day)
    return {
        person: person_days
        for person, person_days in by_person.items()
        if math.fsum(d.clocked_hours for d in person_days) > 0
    }


def department_comparison(days: Iterable[DailyReconciliation]) -> list[dict]:
    """Clocked vs task hours summed per department."""

    clocked: dict[str, list[float]] = defaultdict(list)
    tasked: dict[str, list[float]] = defaultdict(list)
    people: dict[str, int] = defaultdict(int)
    for person, person_days in _clocked_people(days).items():
        people[person.department] += 1
        clocked[person.department].extend(d.clocked_hours for d in person_days)
        tasked[person.department].extend(d.task_hours for d in person_days)

    rows = []
    for department in sorted(people):
        clocked_total = math.fsum(clocked[department])
        task_total = math.fsum(tasked[department])
        rows.append(
            {
                "department": department,
                "clocked_hours": round(clocked_total, 1),
                "task_hours": round(task_total, 1),
                "people": people[department],
                "productivity_ratio": productivity_ratio(clocked_total, task_total),
            }
        )
    return rows


def period_start(day: date, period: str = "weekly") -> date:
    """First day of the bucket holding ``day``; weeks start on Sunday."""

    if period == "monthly":
        return day.replace(day=1)
    if period == "weekly":
        return day - timedelta(days=(day.weekday() + 1) % 7)
    raise ValueError(f"Unsupported trend period '{period}'")


def trend_series(days: Iterable[DailyReconciliation], period: str = "weekly") -> list[dict]:
    """Productivity ratio per week or month, computed from bucket sums."""

    clocked: dict[date, list[float]] = defaultdict(list)
    tasked: dict[date, list[float]] = defaultdict(list)
    for person_days in _clocked_people(days).values():
        for day in person_days:
            if day.clocked_hours <= 0:
                continue
            key = period_start(day.date, period)
            clocked[key].append(day.clocked_hours)
            tasked[key].append(day.task_hours)

    series = []
    for key in sorted(clocked):
        clocked_total = math.fsum(clocked[key])
        task_total = math.fsum(tasked[key])
        series.append(
            {
                "period": key.strftime("%Y-%m") if period == "monthly" else key.isoformat(),
                "clocked_hours": round(clocked_total, 1),
                "task_hours": round(task_total, 1),
                "productivity_ratio": productivity_ratio(clocked_total, task_total),
            }
        )
    return series


def clock_in_heatmap(days: Iterable[DailyReconciliation]) -> np.ndarray:
    """Count clock-in events by day of week (rows, Sunday first) and hour (columns)."""

    grid = np.zeros((7, 24), dtype=int)
    for day in days:
        for clock_in in day.clock_ins:
            grid[(clock_in.weekday() + 1) % 7, clock_in.hour] += 1
    return grid


def heatmap_cells(grid: np.ndarray) -> list[dict]:
    rows, cols = np.nonzero(grid)
    return [
        {"day": int(r), "day_label": DAY_LABELS[int(r)], "hour": int(c), "count": int(grid[r, c])}
        for r, c in zip(rows, cols)
    ]


def person_scatter(days: Iterable[DailyReconciliation]) -> list[dict]:
    """Average clocked and task hours per clocked day, one point per person."""

    points = []
    for person, person_days in _clocked_people(days).items():
        clocked_days = sum(1 for d in person_days if d.clocked_hours > 0) or 1
        points.append(
            {
                "name": person.display_name,
                "department": person.department,
                "avg_clocked_hours": round(math.fsum(d.clocked_hours for d in person_days) / clocked_days, 1),
                "avg_task_hours": round(math.fsum(d.task_hours for d in person_days) / clocked_days, 1),
            }
        )
    points.sort(key=lambda p: (p["name"], p["department"]))
    return points
