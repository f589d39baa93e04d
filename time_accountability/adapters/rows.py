"""Row-level parsing of timesheet, task and assignment records.

Single malformed rows never fail a batch: ``parse_*_row`` raises
``ValueError`` and the batch parsers log, count and skip the row.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from time_accountability.adapters.columns import (
    ASSIGNMENT_COLUMNS,
    ASSIGNMENT_REQUIRED,
    TASK_COLUMNS,
    TASK_REQUIRED,
    TIMESHEET_COLUMNS,
    TIMESHEET_REQUIRED,
    discover_columns,
    missing_fields,
    row_columns,
)
from time_accountability.names import normalize_name
from time_accountability.schema import ClockEntry, TaskRecord

logger = logging.getLogger(__name__)

_COMPLETED_STATUSES = {"finished", "completed", "complete", "done", "closed"}
_MAX_MESSAGES = 25


@dataclass
class ParseReport:
    """Records parsed from one source plus what was skipped along the way."""

    records: list = field(default_factory=list)
    rows_read: int = 0
    skipped: int = 0
    filtered: int = 0
    assignments_skipped: int = 0
    orphan_assignments: int = 0
    schema_detected: bool = True
    messages: list[str] = field(default_factory=list)

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.note(message)

    def note(self, message: str) -> None:
        if len(self.messages) < _MAX_MESSAGES:
            self.messages.append(message)


def _value(row: dict, columns: dict[str, str], field_name: str) -> Any:
    column = columns.get(field_name)
    if column is None:
        return None
    value = row.get(column)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp (or date) into a datetime."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_number(value: Any) -> float:
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def _require_name(raw: Any, label: str, row_number: int) -> str:
    name = str(raw).strip() if raw is not None else ""
    if not name:
        raise ValueError(f"Row {row_number}: missing {label}")
    if not normalize_name(name):
        raise ValueError(f"Row {row_number}: {label} {name!r} has no letters or digits")
    return name


def parse_timesheet_row(row: dict, columns: dict[str, str], row_number: int) -> ClockEntry:
    """Build a ClockEntry from one timesheet row."""

    name = _require_name(_value(row, columns, "employee_name"), "employee name", row_number)

    raw_clock_in = _value(row, columns, "clock_in")
    if raw_clock_in is None:
        raise ValueError(f"Row {row_number}: missing clock-in")
    try:
        clock_in = parse_timestamp(raw_clock_in)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Row {row_number}: malformed clock-in {raw_clock_in!r}") from exc

    clock_out = None
    raw_clock_out = _value(row, columns, "clock_out")
    if raw_clock_out is not None:
        try:
            clock_out = parse_timestamp(raw_clock_out)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Row {row_number}: malformed clock-out {raw_clock_out!r}") from exc

    duration_hours = None
    try:
        raw_hours = _value(row, columns, "duration_hours")
        raw_minutes = _value(row, columns, "duration_minutes")
        if raw_hours is not None:
            duration_hours = parse_number(raw_hours)
        elif raw_minutes is not None:
            duration_hours = parse_number(raw_minutes) / 60.0
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Row {row_number}: unparseable duration") from exc

    if duration_hours is None:
        if clock_out is None:
            raise ValueError(f"Row {row_number}: no clock-out or duration")
        try:
            duration_hours = (clock_out - clock_in).total_seconds() / 3600.0
        except TypeError as exc:
            raise ValueError(f"Row {row_number}: clock-in and clock-out mix timezone-aware and naive values") from exc
    if duration_hours < 0:
        raise ValueError(f"Row {row_number}: negative shift duration")

    job = _value(row, columns, "job")
    return ClockEntry(
        employee_name=name,
        clock_in=clock_in,
        clock_out=clock_out,
        duration_hours=duration_hours,
        job=str(job) if job is not None else None,
    )


def parse_timesheet_rows(rows: Iterable[dict], first_row_number: int = 1) -> ParseReport:
    """Parse timesheet rows, discovering the column layout from the rows themselves."""

    rows = list(rows)
    report = ParseReport(rows_read=len(rows))
    columns = discover_columns(row_columns(rows) or [], TIMESHEET_COLUMNS)
    missing = missing_fields(columns, TIMESHEET_REQUIRED)
    if rows and missing:
        report.schema_detected = False
        report.note(f"Clock schema not detected: no column for {missing}")
        logger.warning("Clock schema not detected; missing %s", missing)
        return report

    for row_number, row in enumerate(rows, start=first_row_number):
        try:
            report.records.append(parse_timesheet_row(row, columns, row_number))
        except ValueError as exc:
            logger.warning("Skipping timesheet row: %s", exc, extra={"row_number": row_number})
            report.skip(f"timesheet: {exc}")
    return report


def parse_task_row(row: dict, columns: dict[str, str], row_number: int) -> Optional[TaskRecord]:
    """Build a TaskRecord (without assignees) from one task row.

    Returns None for tasks that are not finished.
    """

    status = _value(row, columns, "status")
    if status is not None and str(status).lower() not in _COMPLETED_STATUSES:
        return None

    task_id = _value(row, columns, "task_id")
    if task_id is None:
        raise ValueError(f"Row {row_number}: missing task id")

    raw_completed = _value(row, columns, "completed_at")
    if raw_completed is None:
        raise ValueError(f"Row {row_number}: missing completion time")
    try:
        completed_at = parse_timestamp(raw_completed)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Row {row_number}: malformed completion time {raw_completed!r}") from exc

    raw_minutes = _value(row, columns, "duration_minutes")
    if raw_minutes is None:
        raise ValueError(f"Row {row_number}: missing duration")
    try:
        minutes = parse_number(raw_minutes)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Row {row_number}: unparseable duration {raw_minutes!r}") from exc
    if minutes < 0:
        raise ValueError(f"Row {row_number}: negative duration")

    department = _value(row, columns, "department")
    return TaskRecord(
        task_id=str(task_id),
        department=str(department) if department is not None else None,
        completed_at=completed_at,
        duration_minutes=minutes,
    )


def parse_task_rows(
    task_rows: Iterable[dict],
    assignment_rows: Iterable[dict],
    first_row_number: int = 1,
) -> ParseReport:
    """Parse task rows and join them with assignment rows on task id.

    A task may have zero, one or many assignees; duplicates are collapsed.
    """
    task_rows = list(task_rows)
    assignment_rows = list(assignment_rows)
    report = ParseReport(rows_read=len(task_rows))

    task_columns = discover_columns(row_columns(task_rows) or [], TASK_COLUMNS)
    missing = missing_fields(task_columns, TASK_REQUIRED)
    if task_rows and missing:
        report.schema_detected = False
        report.note(f"Task schema not detected: no column for {missing}")
        logger.warning("Task schema not detected; missing %s", missing)
        return report

    tasks: dict[str, TaskRecord] = {}
    for row_number, row in enumerate(task_rows, start=first_row_number):
        try:
            task = parse_task_row(row, task_columns, row_number)
        except ValueError as exc:
            logger.warning("Skipping task row: %s", exc, extra={"row_number": row_number})
            report.skip(f"task: {exc}")
            continue
        if task is None:
            report.filtered += 1
            continue
        if task.task_id in tasks:
            report.skip(f"task: Row {row_number}: duplicate task id {task.task_id!r}")
            continue
        tasks[task.task_id] = task

    assignees: dict[str, dict[str, None]] = {task_id: {} for task_id in tasks}
    assignment_columns = discover_columns(row_columns(assignment_rows) or [], ASSIGNMENT_COLUMNS)
    if assignment_rows and missing_fields(assignment_columns, ASSIGNMENT_REQUIRED):
        report.note("Assignment schema not detected; tasks have no assignees")
        logger.warning("Assignment schema not detected")
        assignment_rows = []

    for row_number, row in enumerate(assignment_rows, start=first_row_number):
        task_id = _value(row, assignment_columns, "task_id")
        try:
            name = _require_name(_value(row, assignment_columns, "assignee_name"), "assignee name", row_number)
        except ValueError as exc:
            logger.warning("Skipping assignment row: %s", exc, extra={"row_number": row_number})
            report.assignments_skipped += 1
            report.note(f"assignment: {exc}")
            continue
        if task_id is None or str(task_id) not in assignees:
            report.orphan_assignments += 1
            continue
        assignees[str(task_id)].setdefault(name, None)

    if report.orphan_assignments:
        logger.warning("%d assignment rows reference tasks outside the snapshot", report.orphan_assignments)
        report.note(f"{report.orphan_assignments} assignment rows reference unknown or skipped tasks")

    report.records = [
        TaskRecord(
            task_id=task.task_id,
            department=task.department,
            completed_at=task.completed_at,
            duration_minutes=task.duration_minutes,
            assignees=tuple(assignees[task.task_id]),
        )
        for task in tasks.values()
    ]
    return report
