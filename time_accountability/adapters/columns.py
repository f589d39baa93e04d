"""
Column discovery for source exports.

Time-clock and task-system exports name their columns differently between
tools and versions ("employee_name" vs "user_name", "clock_in" vs
"start_time", "employeeName" in camelCase APIs). Each source field lists the
column names it accepts; the first matching column wins.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

TIMESHEET_COLUMNS: dict[str, tuple[str, ...]] = {
    "employee_name": ("employee_name", "user_name", "employee", "full_name", "name"),
    "clock_in": ("clock_in", "clock_in_time", "clock_in_timestamp", "start_time", "start"),
    "clock_out": ("clock_out", "clock_out_time", "clock_out_timestamp", "end_time", "end"),
    "duration_hours": ("duration_hours", "total_hours", "hours", "duration"),
    "duration_minutes": ("total_minutes", "duration_minutes", "minutes"),
    "job": ("job_code", "job_name", "job", "department", "group_name"),
}
TIMESHEET_REQUIRED = ("employee_name", "clock_in")

TASK_COLUMNS: dict[str, tuple[str, ...]] = {
    "task_id": ("task_id", "breezeway_id", "id"),
    "department": ("department", "category"),
    "completed_at": ("completed_at", "finished_at", "completion_timestamp", "completion_time", "completed"),
    "duration_minutes": ("duration_minutes", "total_time_minutes", "total_minutes", "minutes"),
    "status": ("status", "status_code"),
}
TASK_REQUIRED = ("task_id", "completed_at", "duration_minutes")

ASSIGNMENT_COLUMNS: dict[str, tuple[str, ...]] = {
    "task_id": ("task_id", "breezeway_id"),
    "assignee_name": ("assignee_name", "assignee", "employee_name", "name"),
}
ASSIGNMENT_REQUIRED = ("task_id", "assignee_name")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def canonical_column(column: str) -> str:
    """Fold a column header to lower snake case."""

    column = _CAMEL_BOUNDARY.sub("_", str(column).strip())
    column = re.sub(r"[\s\-/]+", "_", column.lower())
    return column.strip("_")


def discover_columns(columns: Iterable[str], expected: dict[str, tuple[str, ...]]) -> dict[str, str]:
    """Map each expected field to the actual column holding it.

    Fields with no matching column are left out of the result.
    """
    by_canonical: dict[str, str] = {}
    for column in columns:
        by_canonical.setdefault(canonical_column(column), column)

    mapping = {}
    for field_name, aliases in expected.items():
        for alias in aliases:
            if alias in by_canonical and by_canonical[alias] not in mapping.values():
                mapping[field_name] = by_canonical[alias]
                break
    return mapping


def missing_fields(mapping: dict[str, str], required: Iterable[str]) -> list[str]:
    return [field_name for field_name in required if field_name not in mapping]


def row_columns(rows: list[dict]) -> Optional[list[str]]:
    """Union of keys across rows, in first-seen order."""

    if not rows:
        return None
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)
