"""
Reconciliation configuration: thresholds, cost rate and timezone.

Import defaults from here rather than hardcoding values in the pipeline
modules. Operators override them through a JSON file or CLI flags.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Advisory cost of one unaccounted hour, in dollars.
DEFAULT_HOURLY_RATE: float = 18.0

# Exception thresholds (hours clocked in one day).
LONG_DAY_HOURS: float = 10.0
LOW_HOURS_THRESHOLD: float = 2.0
NO_TASKS_MIN_HOURS: float = 2.0

# Daily "flagged" marker: a full day clocked with little task time behind it.
FLAG_MIN_CLOCKED_HOURS: float = 8.0
FLAG_MAX_TASK_HOURS: float = 2.0

# rapidfuzz ratio (0-100) a fuzzy name match must reach.
SIMILARITY_THRESHOLD: float = 90.0

TREND_PERIODS = ("weekly", "monthly")


@dataclass(frozen=True)
class ReconciliationConfig:
    """Tunable parameters for one engine run."""

    hourly_rate: float = DEFAULT_HOURLY_RATE
    long_day_hours: float = LONG_DAY_HOURS
    low_hours_threshold: float = LOW_HOURS_THRESHOLD
    no_tasks_min_hours: float = NO_TASKS_MIN_HOURS
    flag_min_clocked_hours: float = FLAG_MIN_CLOCKED_HOURS
    flag_max_task_hours: float = FLAG_MAX_TASK_HOURS
    similarity_threshold: float = SIMILARITY_THRESHOLD
    timezone: Optional[str] = None
    trend_period: str = "weekly"

    def __post_init__(self) -> None:
        for name in (
            "hourly_rate",
            "long_day_hours",
            "low_hours_threshold",
            "no_tasks_min_hours",
            "flag_min_clocked_hours",
            "flag_max_task_hours",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not 0 < self.similarity_threshold <= 100:
            raise ValueError("similarity_threshold must be in (0, 100]")
        if self.trend_period not in TREND_PERIODS:
            raise ValueError(f"trend_period must be one of {TREND_PERIODS}")
        if self.timezone is not None:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown timezone '{self.timezone}'") from exc

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    def replace(self, **overrides: Any) -> "ReconciliationConfig":
        """Return a copy with the given non-None fields replaced."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)


def config_from_mapping(values: dict) -> ReconciliationConfig:
    """Build a config from a mapping of overrides, rejecting unknown keys."""

    known = {f.name for f in dataclasses.fields(ReconciliationConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config keys {unknown}")

    numeric = known - {"timezone", "trend_period"}
    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if key in numeric:
            try:
                cleaned[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Config key '{key}' must be a number") from exc
        else:
            cleaned[key] = value
    return ReconciliationConfig(**cleaned)


def load_config(file_path: str) -> ReconciliationConfig:
    """Load a JSON object of config overrides from disk."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, dict):
        raise ValueError("Config file must contain a JSON object")
    return config_from_mapping(payload)
