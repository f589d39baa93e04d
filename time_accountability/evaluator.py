"""Period-over-period comparison of reconciliation totals."""

from __future__ import annotations


def compare(previous_metrics: dict, current_metrics: dict) -> dict:
    """Compare two ``compute_metrics`` outputs with percentage deltas."""

    def pct_change(old: float, new: float) -> float:
        if old == 0:
            return 0.0
        return ((new - old) / old) * 100.0

    prev_ratio = previous_metrics.get("productivity_ratio", 0)
    curr_ratio = current_metrics.get("productivity_ratio", 0)

    return {
        "productivity_ratio_change_pts": float(curr_ratio - prev_ratio),
        "clocked_hours_change_pct": pct_change(
            previous_metrics.get("clocked_hours", 0.0), current_metrics.get("clocked_hours", 0.0)
        ),
        "task_hours_change_pct": pct_change(previous_metrics.get("task_hours", 0.0), current_metrics.get("task_hours", 0.0)),
        "unaccounted_reduction_pct": -pct_change(
            previous_metrics.get("unaccounted_hours", 0.0), current_metrics.get("unaccounted_hours", 0.0)
        ),
    }
