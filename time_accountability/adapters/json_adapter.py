"""JSON adapter for timesheet and task exports."""

from __future__ import annotations

import json
from typing import Optional

from time_accountability.adapters.rows import ParseReport, parse_task_rows, parse_timesheet_rows


def read_rows(file_path: str) -> list[dict]:
    """Read a JSON file holding a list of objects."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")
    if not all(isinstance(item, dict) for item in payload):
        raise ValueError("JSON payload must contain only objects")
    return payload


def parse_timesheets(file_path: str) -> ParseReport:
    """Parse a timesheet JSON file into ClockEntry records."""

    return parse_timesheet_rows(read_rows(file_path))


def parse_tasks(task_file_path: str, assignment_file_path: Optional[str] = None) -> ParseReport:
    """Parse a task JSON file joined with an assignment JSON file."""

    assignments = read_rows(assignment_file_path) if assignment_file_path else []
    return parse_task_rows(read_rows(task_file_path), assignments)
