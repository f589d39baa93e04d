"""
Timesheet exception detection.

Rules (thresholds come from ReconciliationConfig):
- long_day (error): clocked >= long_day_hours
- low_hours_tasks (warning): 0 < clocked < low_hours_threshold and tasks were done
- no_tasks (warning): clocked > no_tasks_min_hours and no tasks were done

The daily ``flagged`` marker on DailyReconciliation is a separate signal and
does not produce an exception by itself.
"""

from __future__ import annotations

from typing import Iterable, Optional

from time_accountability.config import ReconciliationConfig
from time_accountability.schema import DailyReconciliation, TimesheetException

LONG_DAY = "long_day"
LOW_HOURS_TASKS = "low_hours_tasks"
NO_TASKS = "no_tasks"

_SEVERITY_ORDER = {"error": 0, "warning": 1}

# Sums of float durations drift by a few ulps.
_EPSILON = 1e-9


def _fmt(hours: float) -> str:
    return f"{round(hours, 1):g}h"


def detect_exceptions(
    day: DailyReconciliation,
    config: Optional[ReconciliationConfig] = None,
) -> list[TimesheetException]:
    """Return every exception one person-day triggers."""

    config = config or ReconciliationConfig()
    clocked = day.clocked_hours
    found = []

    if clocked >= config.long_day_hours - _EPSILON:
        found.append(
            TimesheetException(LONG_DAY, day.person, day.date, f"{_fmt(clocked)} clocked", "error")
        )
    if _EPSILON < clocked < config.low_hours_threshold - _EPSILON and day.tasks_completed > 0:
        found.append(
            TimesheetException(
                LOW_HOURS_TASKS,
                day.person,
                day.date,
                f"{_fmt(clocked)} clocked, {day.tasks_completed} tasks done",
                "warning",
            )
        )
    if clocked > config.no_tasks_min_hours + _EPSILON and day.tasks_completed == 0:
        found.append(
            TimesheetException(NO_TASKS, day.person, day.date, f"{_fmt(clocked)} clocked, 0 tasks", "warning")
        )
    return found


def sort_exceptions(exceptions: Iterable[TimesheetException]) -> list[TimesheetException]:
    """Errors before warnings, then by person, date and kind."""

    return sorted(
        exceptions,
        key=lambda e: (
            _SEVERITY_ORDER.get(e.severity, len(_SEVERITY_ORDER)),
            e.person.display_name,
            e.person.clock_name or "",
            e.date,
            e.kind,
        ),
    )


def detect_all(
    days: Iterable[DailyReconciliation],
    config: Optional[ReconciliationConfig] = None,
) -> list[TimesheetException]:
    config = config or ReconciliationConfig()
    found = []
    for day in days:
        found.extend(detect_exceptions(day, config))
    return sort_exceptions(found)
