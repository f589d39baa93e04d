"""Demo script for the time reconciliation engine."""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from time_accountability.adapters.csv_adapter import parse_tasks, parse_timesheets
from time_accountability.engine import reconcile
from time_accountability.evaluator import compare
from time_accountability.metrics import compute_metrics


def main() -> None:
    clock_report = parse_timesheets("examples/sample_timesheets.csv")
    task_report = parse_tasks("examples/sample_tasks.csv", "examples/sample_assignments.csv")

    result = reconcile(
        clock_report.records,
        task_report.records,
        start=date(2024, 1, 1),
        end=date(2024, 1, 31),
        clock_report=clock_report,
        task_report=task_report,
    )
    print("Data quality:", result.quality.match_summary, "| skipped rows:", result.quality.messages)
    for person in result.people:
        print(
            f"{person.person.display_name:<16} {person.person.department:<13} "
            f"clocked={person.clocked_hours:5.1f}h tasks={person.task_hours:5.1f}h "
            f"ratio={person.productivity_ratio:>3}% est. cost=${person.estimated_cost:,.0f}"
        )
    for exc in result.exceptions:
        print(f"[{exc.severity}] {exc.kind} {exc.person.display_name} {exc.date}: {exc.detail}")

    earlier = compute_metrics([d for d in result.days if d.date <= date(2024, 1, 5)])
    later = compute_metrics([d for d in result.days if d.date > date(2024, 1, 5)])
    print("Comparison:", compare(earlier, later))


if __name__ == "__main__":
    main()
