"""CSV adapter for timesheet and task exports."""

from __future__ import annotations

import csv
from typing import Optional

from time_accountability.adapters.rows import ParseReport, parse_task_rows, parse_timesheet_rows


def read_rows(file_path: str) -> list[dict]:
    """Read a CSV file with a header row into a list of dicts."""

    with open(file_path, newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []
        return [dict(row) for row in reader]


def parse_timesheets(file_path: str) -> ParseReport:
    """Parse a timesheet CSV into ClockEntry records."""

    # Row numbers count the header as line 1.
    return parse_timesheet_rows(read_rows(file_path), first_row_number=2)


def parse_tasks(task_file_path: str, assignment_file_path: Optional[str] = None) -> ParseReport:
    """Parse a task CSV joined with an assignment CSV into TaskRecord records."""

    assignments = read_rows(assignment_file_path) if assignment_file_path else []
    return parse_task_rows(read_rows(task_file_path), assignments, first_row_number=2)
