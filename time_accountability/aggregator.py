"""Identity building and per-person per-day aggregation."""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Iterable, Optional

from time_accountability.config import ReconciliationConfig
from time_accountability.metrics import build_day
from time_accountability.resolver import NameResolution
from time_accountability.schema import ClockEntry, DailyReconciliation, PersonIdentity, TaskRecord

logger = logging.getLogger(__name__)


@dataclass
class IdentityIndex:
    """Lookup from a raw name in either system to its resolved identity."""

    by_task_name: dict[str, PersonIdentity] = field(default_factory=dict)
    by_clock_name: dict[str, PersonIdentity] = field(default_factory=dict)

    @property
    def identities(self) -> list[PersonIdentity]:
        unique = set(self.by_task_name.values()) | set(self.by_clock_name.values())
        return sorted(unique, key=lambda p: (p.display_name, p.task_name or "", p.clock_name or ""))


def local_date(timestamp: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of a timestamp in the configured zone (or its own)."""

    return localize(timestamp, tz).date()


def localize(timestamp: datetime, tz: Optional[tzinfo] = None) -> datetime:
    if tz is not None and timestamp.tzinfo is not None:
        return timestamp.astimezone(tz)
    return timestamp


def _most_common(labels: Counter) -> Optional[str]:
    if not labels:
        return None
    return min(labels, key=lambda label: (-labels[label], label))


def build_identities(
    resolution: NameResolution,
    clock_entries: Iterable[ClockEntry],
    tasks: Iterable[TaskRecord],
) -> IdentityIndex:
    """
    Create one PersonIdentity per task name and per unclaimed clock name.

    Department: the most frequent clock job label when the person has any,
    otherwise the most frequent task department, otherwise "unknown".
    """
    clock_jobs: dict[str, Counter] = defaultdict(Counter)
    for entry in clock_entries:
        if entry.job:
            clock_jobs[entry.employee_name][entry.job] += 1

    task_departments: dict[str, Counter] = defaultdict(Counter)
    for task in tasks:
        if not task.department:
            continue
        for assignee in task.assignees:
            task_departments[assignee][task.department] += 1

    index = IdentityIndex()
    for task_name, clock_name in resolution.matches.items():
        department = (
            (_most_common(clock_jobs[clock_name]) if clock_name else None)
            or _most_common(task_departments[task_name])
            or "unknown"
        )
        identity = PersonIdentity(
            display_name=task_name,
            department=department,
            task_name=task_name,
            clock_name=clock_name,
            match_method=resolution.methods.get(task_name),
        )
        index.by_task_name[task_name] = identity
        if clock_name is not None:
            index.by_clock_name[clock_name] = identity

    for clock_name in resolution.unmatched_clock:
        index.by_clock_name[clock_name] = PersonIdentity(
            display_name=clock_name,
            department=_most_common(clock_jobs[clock_name]) or "unknown",
            clock_name=clock_name,
        )

    return index


@dataclass
class _DayBucket:
    shift_hours: list = field(default_factory=list)
    task_hours: list = field(default_factory=list)
    clock_ins: list = field(default_factory=list)


def aggregate_days(
    index: IdentityIndex,
    clock_entries: Iterable[ClockEntry],
    tasks: Iterable[TaskRecord],
    config: Optional[ReconciliationConfig] = None,
) -> list[DailyReconciliation]:
    """
    Merge clocked and task-attributed time into one record per person per date.

    Shifts bucket by the local date of clock-in, tasks by the local date of
    completion. The two clocks are independent and are not reconciled with
    each other.
    """
    config = config or ReconciliationConfig()
    tz = config.tzinfo
    buckets: dict[tuple[PersonIdentity, date], _DayBucket] = defaultdict(_DayBucket)

    for entry in clock_entries:
        identity = index.by_clock_name.get(entry.employee_name)
        if identity is None:
            logger.debug("No identity for clock name %r", entry.employee_name)
            continue
        clock_in = localize(entry.clock_in, tz)
        bucket = buckets[(identity, clock_in.date())]
        bucket.shift_hours.append(entry.hours)
        bucket.clock_ins.append(clock_in)

    for task in tasks:
        day = local_date(task.completed_at, tz)
        for assignee in dict.fromkeys(task.assignees):
            identity = index.by_task_name.get(assignee)
            if identity is None:
                logger.debug("No identity for assignee %r", assignee)
                continue
            bucket = buckets[(identity, day)]
            bucket.task_hours.append(task.hours)

    days = [
        build_day(
            person=identity,
            day=day,
            clocked_hours=math.fsum(bucket.shift_hours),
            task_hours=math.fsum(bucket.task_hours),
            tasks_completed=len(bucket.task_hours),
            config=config,
            clock_ins=tuple(sorted(bucket.clock_ins, key=lambda c: c.isoformat())),
        )
        for (identity, day), bucket in buckets.items()
    ]
    days.sort(key=lambda d: (d.person.display_name, d.person.task_name or "", d.person.clock_name or "", d.date))
    logger.debug("Aggregated %d person-days for %d people", len(days), len(index.identities))
    return days
