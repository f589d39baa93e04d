"""Unaccounted time, productivity ratio and cost metrics."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from time_accountability.config import ReconciliationConfig
from time_accountability.schema import DailyReconciliation, PersonIdentity, PersonSummary


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def unaccounted_hours(clocked_hours: float, task_hours: float) -> float:
    """Clocked time not explained by task time, never negative."""

    return max(0.0, clocked_hours - task_hours)


def productivity_ratio(clocked_hours: float, task_hours: float) -> int:
    """Task hours as an integer percent of clocked hours.

    Task time with no clocked time counts as fully explained (100). Values
    above 100 are kept: they point at missing punches or shared tasks.
    """

    if clocked_hours > 0:
        return round_half_up(task_hours / clocked_hours * 100)
    return 100 if task_hours > 0 else 0


def estimated_cost(unaccounted: float, hourly_rate: float) -> float:
    """Advisory cost estimate of unaccounted time (not a payroll figure)."""

    return unaccounted * hourly_rate


def is_flagged(clocked_hours: float, task_hours: float, config: ReconciliationConfig) -> bool:
    return clocked_hours >= config.flag_min_clocked_hours and task_hours < config.flag_max_task_hours


def build_day(
    person: PersonIdentity,
    day: date,
    clocked_hours: float,
    task_hours: float,
    tasks_completed: int,
    config: Optional[ReconciliationConfig] = None,
    clock_ins: tuple[datetime, ...] = (),
) -> DailyReconciliation:
    """Derive every per-day metric from the raw sums."""

    config = config or ReconciliationConfig()
    return DailyReconciliation(
        person=person,
        date=day,
        clocked_hours=clocked_hours,
        task_hours=task_hours,
        tasks_completed=tasks_completed,
        unaccounted_hours=unaccounted_hours(clocked_hours, task_hours),
        coverage=productivity_ratio(clocked_hours, task_hours),
        flagged=is_flagged(clocked_hours, task_hours, config),
        clock_ins=clock_ins,
    )


def summarize_person(
    person: PersonIdentity,
    days: list[DailyReconciliation],
    config: Optional[ReconciliationConfig] = None,
) -> PersonSummary:
    """Roll one person's days up as a ratio of sums, not an average of ratios."""

    config = config or ReconciliationConfig()
    clocked = math.fsum(d.clocked_hours for d in days)
    tasked = math.fsum(d.task_hours for d in days)
    unaccounted = unaccounted_hours(clocked, tasked)
    return PersonSummary(
        person=person,
        clocked_hours=clocked,
        task_hours=tasked,
        tasks_completed=sum(d.tasks_completed for d in days),
        unaccounted_hours=unaccounted,
        estimated_cost=estimated_cost(unaccounted, config.hourly_rate),
        productivity_ratio=productivity_ratio(clocked, tasked),
        days=sorted(days, key=lambda d: d.date, reverse=True),
    )


def summarize_people(
    days: Iterable[DailyReconciliation],
    config: Optional[ReconciliationConfig] = None,
) -> list[PersonSummary]:
    """Per-person rollups, largest unaccounted time first."""

    by_person: dict[PersonIdentity, list[DailyReconciliation]] = defaultdict(list)
    for day in days:
        by_person[day.person].append(day)

    summaries = [summarize_person(person, person_days, config) for person, person_days in by_person.items()]
    summaries.sort(key=lambda s: (-s.unaccounted_hours, s.person.display_name, s.person.clock_name or ""))
    return summaries


def compute_metrics(days: list[DailyReconciliation], config: Optional[ReconciliationConfig] = None) -> dict:
    """Team-level totals over a set of person-days."""

    config = config or ReconciliationConfig()
    if not days:
        return {
            "clocked_hours": 0.0,
            "task_hours": 0.0,
            "unaccounted_hours": 0.0,
            "estimated_cost": 0.0,
            "productivity_ratio": 0,
            "people": 0,
            "flagged_days": 0,
        }

    people = summarize_people(days, config)
    clocked = math.fsum(d.clocked_hours for d in days)
    tasked = math.fsum(d.task_hours for d in days)
    unaccounted = math.fsum(p.unaccounted_hours for p in people)
    return {
        "clocked_hours": clocked,
        "task_hours": tasked,
        "unaccounted_hours": unaccounted,
        "estimated_cost": estimated_cost(unaccounted, config.hourly_rate),
        "productivity_ratio": productivity_ratio(clocked, tasked),
        "people": len(people),
        "flagged_days": sum(1 for d in days if d.flagged),
    }
