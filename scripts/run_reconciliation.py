"""Run the time reconciliation engine over CSV/JSON exports."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from time_accountability.adapters import csv_adapter, json_adapter
from time_accountability.config import ReconciliationConfig, load_config
from time_accountability.engine import reconcile
from time_accountability.logging_config import setup_logging

logger = logging.getLogger("time_accountability.cli")


def _adapter_for(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter
    if suffix == ".json":
        return json_adapter
    raise ValueError("Unsupported input format, expected .csv or .json")


def _load_timesheets(path: Path):
    return _adapter_for(path).parse_timesheets(str(path))


def _load_tasks(task_path: Path, assignment_path: Path | None):
    adapter = _adapter_for(task_path)
    if assignment_path is not None and _adapter_for(assignment_path) is not adapter:
        raise ValueError("Task and assignment files must share a format")
    return adapter.parse_tasks(str(task_path), str(assignment_path) if assignment_path else None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reconcile clocked time against completed tasks")
    parser.add_argument("--timesheets", help="Path to CSV/JSON timesheet export")
    parser.add_argument("--tasks", help="Path to CSV/JSON completed-task export")
    parser.add_argument("--assignments", help="Path to CSV/JSON task assignment export")
    parser.add_argument("--from", dest="start", required=True, type=date.fromisoformat, help="First date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="end", required=True, type=date.fromisoformat, help="Last date (YYYY-MM-DD)")
    parser.add_argument("--department", help="Only include this department")
    parser.add_argument("--min-hours", type=float, help="Only include people with at least this many clocked hours")
    parser.add_argument("--rate", type=float, help="Hourly rate for the unaccounted-time cost estimate")
    parser.add_argument("--period", choices=["weekly", "monthly"], help="Trend bucket size")
    parser.add_argument("--timezone", help="IANA zone used to bucket timestamps into dates")
    parser.add_argument("--config", help="JSON file with threshold overrides")
    parser.add_argument("--output", default="outputs/reconciliation_report.json", help="Where to save the report")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs, stream=sys.stderr)

    if not args.timesheets and not args.tasks:
        logger.error("Provide --timesheets, --tasks, or both")
        return 2

    try:
        config = load_config(args.config) if args.config else ReconciliationConfig()
        config = config.replace(hourly_rate=args.rate, trend_period=args.period, timezone=args.timezone)

        clock_report = _load_timesheets(Path(args.timesheets)) if args.timesheets else None
        task_report = (
            _load_tasks(Path(args.tasks), Path(args.assignments) if args.assignments else None) if args.tasks else None
        )

        result = reconcile(
            clock_report.records if clock_report else [],
            task_report.records if task_report else [],
            start=args.start,
            end=args.end,
            config=config,
            department=args.department,
            min_clocked_hours=args.min_hours,
            clock_report=clock_report,
            task_report=task_report,
        )
    except (OSError, ValueError) as exc:
        logger.error("Reconciliation failed: %s", exc)
        return 2

    report = result.to_dict()

    print(json.dumps(report, indent=2))

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    logger.info("Saved reconciliation report to %s", out_path)
    return 0 if result.has_data else 1


if __name__ == "__main__":
    sys.exit(main())
