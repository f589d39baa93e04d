"""Streamlit demo UI for the time reconciliation engine."""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Optional

from time_accountability.adapters import csv_adapter, json_adapter
from time_accountability.adapters.rows import ParseReport
from time_accountability.config import ReconciliationConfig
from time_accountability.engine import reconcile
from time_accountability.logging_config import setup_logging
from time_accountability.rollups import DAY_LABELS
from time_accountability.schema import ReconciliationResult

logger = logging.getLogger(__name__)

DEMO_FILES = {
    "timesheets": "examples/sample_timesheets.csv",
    "tasks": "examples/sample_tasks.csv",
    "assignments": "examples/sample_assignments.csv",
}


def _adapter_for(file_path: str):
    suffix = Path(file_path).suffix.lower()
    if suffix == ".csv":
        return csv_adapter
    if suffix == ".json":
        return json_adapter
    raise ValueError("Unsupported file type. Please use .csv or .json")


def _save_uploaded(uploaded_file) -> str:
    suffix = Path(uploaded_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
        handle.write(uploaded_file.getbuffer())
        return handle.name


def load_sources(
    timesheet_path: Optional[str], task_path: Optional[str], assignment_path: Optional[str]
) -> tuple[Optional[ParseReport], Optional[ParseReport]]:
    clock_report = _adapter_for(timesheet_path).parse_timesheets(timesheet_path) if timesheet_path else None
    task_report = _adapter_for(task_path).parse_tasks(task_path, assignment_path) if task_path else None
    return clock_report, task_report


def heatmap_matrix(result: ReconciliationResult) -> list[dict[str, Any]]:
    """Rows of day-of-week with one column per hour, for st.dataframe."""

    grid = [[0] * 24 for _ in DAY_LABELS]
    for cell in result.heatmap:
        grid[cell["day"]][cell["hour"]] = cell["count"]
    return [{"day": label, **{f"{hour:02d}": grid[i][hour] for hour in range(24)}} for i, label in enumerate(DAY_LABELS)]


def run_engine(
    clock_report: Optional[ParseReport],
    task_report: Optional[ParseReport],
    start: date,
    end: date,
    config: ReconciliationConfig,
    department: Optional[str] = None,
    min_hours: float = 0.0,
) -> dict[str, Any]:
    """Run the engine and return a UI-friendly result payload."""

    result = reconcile(
        clock_report.records if clock_report else [],
        task_report.records if task_report else [],
        start=start,
        end=end,
        config=config,
        department=department,
        min_clocked_hours=min_hours or None,
        clock_report=clock_report,
        task_report=task_report,
    )
    report = result.to_dict()
    report["heatmap_matrix"] = heatmap_matrix(result)
    report["data_mismatches"] = [p["name"] for p in report["people"] if p["productivity_ratio"] > 100]
    return report


def main() -> None:
    import streamlit as st

    setup_logging("WARNING")
    st.set_page_config(page_title="Time Accountability", layout="wide")
    st.title("Time Accountability: clocked time vs completed tasks")

    with st.sidebar:
        st.header("Controls")
        use_demo = st.checkbox("Load demo dataset", value=True)
        uploaded_timesheets = st.file_uploader("Timesheet export", type=["csv", "json"])
        uploaded_tasks = st.file_uploader("Task export", type=["csv", "json"])
        uploaded_assignments = st.file_uploader("Assignment export", type=["csv", "json"])
        start = st.date_input("From", value=date(2024, 1, 1))
        end = st.date_input("To", value=date(2024, 1, 31))
        department = st.text_input("Department (blank for all)", value="")
        min_hours = st.slider("Minimum clocked hours", min_value=0, max_value=80, value=0)
        rate = st.number_input("Hourly rate ($)", min_value=0.0, max_value=200.0, value=18.0, step=1.0)
        period = st.selectbox("Trend period", options=["weekly", "monthly"], index=0)
        run = st.button("Run reconciliation", type="primary")

    if not run:
        st.info("Configure inputs in the sidebar and click **Run reconciliation**.")
        return

    try:
        if use_demo:
            paths = DEMO_FILES
        else:
            paths = {
                "timesheets": _save_uploaded(uploaded_timesheets) if uploaded_timesheets else None,
                "tasks": _save_uploaded(uploaded_tasks) if uploaded_tasks else None,
                "assignments": _save_uploaded(uploaded_assignments) if uploaded_assignments else None,
            }
            if not paths["timesheets"] and not paths["tasks"]:
                st.error("Please upload a timesheet or task export, or enable 'Load demo dataset'.")
                return

        clock_report, task_report = load_sources(paths["timesheets"], paths["tasks"], paths["assignments"])
        config = ReconciliationConfig(hourly_rate=float(rate), trend_period=period)
        report = run_engine(clock_report, task_report, start, end, config, department or None, float(min_hours))

        quality = report["data_quality"]
        if report["status"] == "no_data":
            st.error("No usable clock or task rows for this range. This is not a perfect reconciliation.")
            st.write(quality["messages"])
            return
        if quality["no_clock_data"]:
            st.warning("Time-clock data not found. Showing task data only.")

        st.subheader("A) Data Quality")
        q1, q2, q3 = st.columns(3)
        q1.metric("Names matched", quality["names_matched"])
        q2.metric("Clock rows skipped", quality["clock_rows_skipped"])
        q3.metric("Task rows skipped", quality["task_rows_skipped"])
        if quality["messages"]:
            st.write(quality["messages"])

        st.subheader("B) People")
        st.dataframe(report["people"])
        if report["data_mismatches"]:
            st.caption(f"Task hours exceed clocked hours for: {', '.join(report['data_mismatches'])}")

        st.subheader("C) Exceptions")
        st.table(report["exceptions"][:15])

        st.subheader("D) Departments and Trend")
        d1, d2 = st.columns(2)
        d1.table(report["department_comparison"])
        d2.line_chart({row["period"]: row["productivity_ratio"] for row in report["trend"]})

        st.subheader("E) Clock-in Heatmap")
        st.dataframe(report["heatmap_matrix"])

        st.caption("Estimated costs are advisory and are not payroll figures.")

    except ValueError as exc:
        st.error(f"Input error: {exc}")
    except Exception:
        logger.exception("Reconciliation demo failed")
        st.error("Something went wrong while running the reconciliation. Please verify the input format.")


if __name__ == "__main__":
    main()
