"""
Time reconciliation pipeline.

Takes a date-bounded snapshot from the time-clock system and the task system
and produces person-day reconciliations, exceptions and rollup views.

Pipeline:
1. Filter both sources to the requested range (local calendar dates)
2. Resolve task-system names to clock-system names (global, one pass)
3. Build identities and merge both sources per person per day
4. Apply department / minimum-clocked-hours filters
5. Detect exceptions and compute rollups over what is left

Nothing is stored between runs; the same snapshot always yields the same
result.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, Optional

from time_accountability.adapters.rows import ParseReport
from time_accountability.aggregator import aggregate_days, build_identities, local_date
from time_accountability.config import ReconciliationConfig
from time_accountability.exceptions import detect_all
from time_accountability.metrics import compute_metrics, summarize_people
from time_accountability.resolver import resolve_names
from time_accountability.rollups import (
    clock_in_heatmap,
    department_comparison,
    heatmap_cells,
    person_scatter,
    trend_series,
)
from time_accountability.schema import ClockEntry, DataQuality, DailyReconciliation, ReconciliationResult, TaskRecord

logger = logging.getLogger(__name__)


def _in_range(day: date, start: date, end: date) -> bool:
    return start <= day <= end


def _apply_filters(
    days: list[DailyReconciliation],
    department: Optional[str],
    min_clocked_hours: Optional[float],
) -> list[DailyReconciliation]:
    if department:
        wanted = department.strip().lower()
        days = [d for d in days if d.person.department.lower() == wanted]

    if min_clocked_hours:
        totals: dict = {}
        for day in days:
            totals[day.person] = totals.get(day.person, 0.0) + day.clocked_hours
        days = [d for d in days if totals[d.person] >= min_clocked_hours]
    return days


def _record_report(quality: DataQuality, report: Optional[ParseReport], source: str) -> None:
    if report is None:
        return
    if source == "clock":
        quality.clock_rows_read = report.rows_read
        quality.clock_rows_skipped = report.skipped
    else:
        quality.task_rows_read = report.rows_read
        quality.task_rows_skipped = report.skipped
        quality.assignment_rows_skipped = report.assignments_skipped
        quality.orphan_assignments = report.orphan_assignments
    quality.messages.extend(report.messages)


def _usable_entries(clock_entries: list[ClockEntry], quality: DataQuality) -> list[ClockEntry]:
    """Drop shifts with no usable duration, counting them as skipped rows."""

    usable = []
    for entry in clock_entries:
        try:
            hours = entry.hours
        except (TypeError, ValueError) as exc:
            problem = str(exc) or "unusable duration"
        else:
            if hours >= 0:
                usable.append(entry)
                continue
            problem = f"Shift for {entry.employee_name!r} has a negative duration"
        logger.warning("Skipping clock entry: %s", problem)
        quality.clock_rows_skipped += 1
        quality.messages.append(f"timesheet: {problem}")
    return usable


def reconcile(
    clock_entries: Iterable[ClockEntry],
    tasks: Iterable[TaskRecord],
    start: date,
    end: date,
    config: Optional[ReconciliationConfig] = None,
    department: Optional[str] = None,
    min_clocked_hours: Optional[float] = None,
    clock_report: Optional[ParseReport] = None,
    task_report: Optional[ParseReport] = None,
) -> ReconciliationResult:
    """
    Reconcile clocked time against completed tasks for one date range.

    Args:
        clock_entries: Shifts from the time-clock system
        tasks: Completed tasks with their assignees
        start: First calendar date included
        end: Last calendar date included
        config: Thresholds, cost rate and timezone
        department: Only keep people in this department (before rollups)
        min_clocked_hours: Only keep people with at least this many clocked
            hours across the range
        clock_report: Parse report for the clock rows, for data-quality counts
        task_report: Parse report for the task rows, for data-quality counts

    Returns:
        ReconciliationResult with status "no_data" when neither source had a
        usable row in range
    """
    if start > end:
        raise ValueError(f"start {start} is after end {end}")
    if min_clocked_hours is not None and min_clocked_hours < 0:
        raise ValueError("min_clocked_hours must be non-negative")

    config = config or ReconciliationConfig()
    tz = config.tzinfo
    clock_entries = list(clock_entries)
    tasks = list(tasks)

    quality = DataQuality(clock_rows_read=len(clock_entries), task_rows_read=len(tasks))
    _record_report(quality, clock_report, "clock")
    _record_report(quality, task_report, "task")

    clock_entries = _usable_entries(clock_entries, quality)
    clock_in_range = [e for e in clock_entries if _in_range(local_date(e.clock_in, tz), start, end)]
    tasks_in_range = [t for t in tasks if _in_range(local_date(t.completed_at, tz), start, end)]
    quality.clock_rows_out_of_range = len(clock_entries) - len(clock_in_range)
    quality.tasks_out_of_range = len(tasks) - len(tasks_in_range)
    quality.tasks_in_range = len(tasks_in_range)

    unassigned = [t for t in tasks_in_range if not t.assignees]
    if unassigned:
        quality.tasks_unassigned = len(unassigned)
        quality.unassigned_task_hours = math.fsum(t.hours for t in unassigned)
        logger.warning("%d completed tasks in range have no assignee", len(unassigned))
        quality.messages.append(
            f"{len(unassigned)} completed tasks ({quality.unassigned_task_hours:.1f}h) have no assignee"
        )

    task_names = {name for task in tasks_in_range for name in task.assignees}
    clock_names = {entry.employee_name for entry in clock_in_range}
    quality.task_names = len(task_names)
    quality.clock_names = len(clock_names)

    if not task_names and not clock_names:
        logger.warning("No usable clock or task rows between %s and %s", start, end)
        quality.messages.append("No usable rows from either system for the requested range")
        return ReconciliationResult(status="no_data", start=start, end=end, quality=quality)

    if not clock_names:
        logger.warning("No clock data in range; results are task-only")
        quality.messages.append("No clock data: showing task-system data only")
    if not tasks_in_range:
        logger.warning("No task data in range; results are clock-only")
        quality.messages.append("No task data: showing clock-system data only")

    resolution = resolve_names(task_names, clock_names, similarity_threshold=config.similarity_threshold)
    quality.task_names_matched = resolution.matched_count
    quality.task_only_names = list(resolution.unmatched_task)
    quality.clock_only_names = list(resolution.unmatched_clock)

    index = build_identities(resolution, clock_in_range, tasks_in_range)
    days = aggregate_days(index, clock_in_range, tasks_in_range, config)
    days = _apply_filters(days, department, min_clocked_hours)

    grid = clock_in_heatmap(days)
    result = ReconciliationResult(
        status="ok",
        start=start,
        end=end,
        days=days,
        people=summarize_people(days, config),
        exceptions=detect_all(days, config),
        department_comparison=department_comparison(days),
        trend=trend_series(days, config.trend_period),
        heatmap=heatmap_cells(grid),
        scatter=person_scatter(days),
        totals=compute_metrics(days, config),
        quality=quality,
    )
    logger.info(
        "Reconciled %s to %s: %d person-days, %d exceptions, %s",
        start,
        end,
        len(result.days),
        len(result.exceptions),
        quality.match_summary,
    )
    return result
