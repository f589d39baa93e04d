"""Core data schema for time reconciliation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class ClockEntry:
    """One shift from the time-clock system."""

    employee_name: str
    clock_in: datetime
    clock_out: Optional[datetime] = None
    duration_hours: Optional[float] = None
    job: Optional[str] = None

    @property
    def hours(self) -> float:
        if self.duration_hours is not None:
            return self.duration_hours
        if self.clock_out is None:
            raise ValueError(f"Shift for {self.employee_name!r} has no clock-out or duration")
        return (self.clock_out - self.clock_in).total_seconds() / 3600.0


@dataclass(frozen=True)
class TaskRecord:
    """One completed task from the task system, with its assignees.

    A task with several assignees credits its full duration to each of them.
    """

    task_id: str
    department: Optional[str]
    completed_at: datetime
    duration_minutes: float
    assignees: tuple[str, ...] = ()

    @property
    def hours(self) -> float:
        return self.duration_minutes / 60.0


@dataclass(frozen=True)
class PersonIdentity:
    """A person resolved across both systems for one run."""

    display_name: str
    department: str = "unknown"
    task_name: Optional[str] = None
    clock_name: Optional[str] = None
    match_method: Optional[str] = None

    @property
    def has_clock_identity(self) -> bool:
        return self.clock_name is not None

    @property
    def has_task_identity(self) -> bool:
        return self.task_name is not None


@dataclass(frozen=True)
class DailyReconciliation:
    """Clocked vs task-attributed time for one person on one calendar date."""

    person: PersonIdentity
    date: date
    clocked_hours: float
    task_hours: float
    tasks_completed: int
    unaccounted_hours: float
    coverage: int
    flagged: bool
    clock_ins: tuple[datetime, ...] = ()


@dataclass(frozen=True)
class TimesheetException:
    """A thresholded anomaly on a single person-day."""

    kind: str
    person: PersonIdentity
    date: date
    detail: str
    severity: str


@dataclass
class PersonSummary:
    """Per-person totals across every day in range."""

    person: PersonIdentity
    clocked_hours: float
    task_hours: float
    tasks_completed: int
    unaccounted_hours: float
    estimated_cost: float
    productivity_ratio: int
    days: list[DailyReconciliation] = field(default_factory=list)


@dataclass
class DataQuality:
    """Counts describing how much of the input made it into the result."""

    clock_rows_read: int = 0
    clock_rows_skipped: int = 0
    task_rows_read: int = 0
    task_rows_skipped: int = 0
    assignment_rows_skipped: int = 0
    orphan_assignments: int = 0
    clock_rows_out_of_range: int = 0
    tasks_out_of_range: int = 0
    tasks_in_range: int = 0
    tasks_unassigned: int = 0
    unassigned_task_hours: float = 0.0
    task_names: int = 0
    task_names_matched: int = 0
    clock_names: int = 0
    clock_only_names: list[str] = field(default_factory=list)
    task_only_names: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    @property
    def no_clock_data(self) -> bool:
        return self.clock_names == 0

    @property
    def no_task_data(self) -> bool:
        return self.tasks_in_range == 0

    @property
    def match_summary(self) -> str:
        return f"{self.task_names_matched} of {self.task_names} names matched"


@dataclass
class ReconciliationResult:
    """Everything one engine run produces."""

    status: str
    start: date
    end: date
    days: list[DailyReconciliation] = field(default_factory=list)
    people: list[PersonSummary] = field(default_factory=list)
    exceptions: list[TimesheetException] = field(default_factory=list)
    department_comparison: list[dict] = field(default_factory=list)
    trend: list[dict] = field(default_factory=list)
    heatmap: list[dict] = field(default_factory=list)
    scatter: list[dict] = field(default_factory=list)
    totals: dict = field(default_factory=dict)
    quality: DataQuality = field(default_factory=DataQuality)

    @property
    def has_data(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict:
        """Render a JSON-friendly report, hours rounded for presentation."""

        def _day(day: DailyReconciliation) -> dict:
            return {
                "name": day.person.display_name,
                "date": day.date.isoformat(),
                "clocked_hours": round(day.clocked_hours, 1),
                "task_hours": round(day.task_hours, 1),
                "tasks_completed": day.tasks_completed,
                "unaccounted_hours": round(day.unaccounted_hours, 1),
                "coverage": day.coverage,
                "flagged": day.flagged,
            }

        return {
            "status": self.status,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "people": [
                {
                    "name": p.person.display_name,
                    "clock_name": p.person.clock_name,
                    "department": p.person.department,
                    "match_method": p.person.match_method,
                    "clocked_hours": round(p.clocked_hours, 1),
                    "task_hours": round(p.task_hours, 1),
                    "tasks_completed": p.tasks_completed,
                    "unaccounted_hours": round(p.unaccounted_hours, 1),
                    "estimated_cost": round(p.estimated_cost, 2),
                    "productivity_ratio": p.productivity_ratio,
                }
                for p in self.people
            ],
            "days": [_day(day) for day in self.days],
            "exceptions": [
                {
                    "type": e.kind,
                    "name": e.person.display_name,
                    "date": e.date.isoformat(),
                    "detail": e.detail,
                    "severity": e.severity,
                }
                for e in self.exceptions
            ],
            "department_comparison": self.department_comparison,
            "trend": self.trend,
            "heatmap": self.heatmap,
            "scatter": self.scatter,
            "totals": {
                key: round(value, 2) if isinstance(value, float) else value for key, value in self.totals.items()
            },
            "data_quality": {
                "clock_rows_read": self.quality.clock_rows_read,
                "clock_rows_skipped": self.quality.clock_rows_skipped,
                "task_rows_read": self.quality.task_rows_read,
                "task_rows_skipped": self.quality.task_rows_skipped,
                "assignment_rows_skipped": self.quality.assignment_rows_skipped,
                "orphan_assignments": self.quality.orphan_assignments,
                "clock_rows_out_of_range": self.quality.clock_rows_out_of_range,
                "tasks_out_of_range": self.quality.tasks_out_of_range,
                "tasks_unassigned": self.quality.tasks_unassigned,
                "unassigned_task_hours": round(self.quality.unassigned_task_hours, 1),
                "names_matched": self.quality.match_summary,
                "clock_only_names": self.quality.clock_only_names,
                "task_only_names": self.quality.task_only_names,
                "no_clock_data": self.quality.no_clock_data,
                "no_task_data": self.quality.no_task_data,
                "messages": self.quality.messages,
            },
        }
