"""
Identity resolution between task-system and clock-system names.

There is no shared key between the two systems, so names are matched by a
chain of strategies in priority order:

1. Exact match on the normalized key
2. Token subset ("Maria G" vs "Maria Gonzalez", first name only vs full name)
3. String similarity above a conservative threshold

Each strategy runs as a full pass over every task name before the next one
starts, so an exact match always wins over a looser match elsewhere in the
roster. Matching is greedy and one-to-one: a clock name consumed by one task
name is not offered to any later one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from rapidfuzz import fuzz, process

from time_accountability.config import SIMILARITY_THRESHOLD
from time_accountability.names import name_tokens, normalize_name

logger = logging.getLogger(__name__)


@dataclass
class NameResolution:
    """Result of matching task-system names to clock-system names."""

    matches: dict[str, Optional[str]]      # task name -> clock name (or None)
    methods: dict[str, str]                # task name -> strategy that matched it
    unmatched_clock: list[str]             # clock names nobody claimed
    unmatched_task: list[str] = field(default_factory=list)

    @property
    def matched_count(self) -> int:
        return sum(1 for clock_name in self.matches.values() if clock_name is not None)

    def clock_to_task(self) -> dict[str, str]:
        return {clock: task for task, clock in self.matches.items() if clock is not None}


class ExactMatch:
    """Normalized keys are identical."""

    name = "exact"

    def score(self, task_key: str, candidates: Sequence[str]) -> dict[str, float]:
        return {candidate: 100.0 for candidate in candidates if candidate == task_key}


class TokenSubsetMatch:
    """One name's tokens are all covered by the other's.

    A single-letter token is an initial and covers any token starting with
    that letter. At least one token has to match in full.
    """

    name = "token_subset"

    def score(self, task_key: str, candidates: Sequence[str]) -> dict[str, float]:
        task_tokens = name_tokens(task_key)
        scores = {}
        for candidate in candidates:
            if _tokens_cover(task_tokens, name_tokens(candidate)):
                scores[candidate] = 100.0
        return scores


class SimilarityMatch:
    """rapidfuzz ratio over the normalized forms, above a fixed threshold."""

    name = "similarity"

    def __init__(self, threshold: float = SIMILARITY_THRESHOLD):
        self.threshold = threshold

    def score(self, task_key: str, candidates: Sequence[str]) -> dict[str, float]:
        extraction = process.extract(
            task_key,
            list(candidates),
            scorer=fuzz.ratio,
            score_cutoff=self.threshold,
            limit=None,
        )
        return {candidate: float(score) for candidate, score, _ in extraction}


def _tokens_cover(left: tuple[str, ...], right: tuple[str, ...]) -> bool:
    if not left or not right or left == right:
        return False
    if len(left) == len(right):
        return _covers(left, right) or _covers(right, left)
    if len(left) < len(right):
        return _covers(left, right)
    return _covers(right, left)


def _covers(shorter: tuple[str, ...], longer: tuple[str, ...]) -> bool:
    remaining = list(longer)
    full_hits = 0
    # Full tokens claim their partner first so an initial can't steal it.
    for token in sorted(shorter, key=len, reverse=True):
        if token in remaining:
            remaining.remove(token)
            full_hits += 1
            continue
        if len(token) == 1:
            partner = next((t for t in remaining if t.startswith(token)), None)
            if partner is not None:
                remaining.remove(partner)
                continue
        return False
    return full_hits > 0


def default_strategies(similarity_threshold: float = SIMILARITY_THRESHOLD) -> list:
    return [ExactMatch(), TokenSubsetMatch(), SimilarityMatch(similarity_threshold)]


def _run_pass(
    strategy,
    task_keys: dict[str, str],
    clock_keys: dict[str, str],
    matches: dict[str, Optional[str]],
    methods: dict[str, str],
    consumed: set[str],
) -> set[str]:
    """Match still-unmatched task names with one strategy; return the grown consumed set."""

    consumed = set(consumed)
    for task_name in sorted(task_keys):
        if matches.get(task_name) is not None:
            continue
        available = {key: clock for clock, key in sorted(clock_keys.items(), reverse=True) if clock not in consumed}
        # Several raw clock names may share one key; the dict above keeps the smallest.
        if not available:
            break

        scores = strategy.score(task_keys[task_name], list(available))
        if not scores:
            continue

        best_key = min(scores, key=lambda key: (-scores[key], available[key]))
        clock_name = available[best_key]
        matches[task_name] = clock_name
        methods[task_name] = strategy.name
        consumed.add(clock_name)
        logger.debug("Matched %r -> %r via %s (score %.1f)", task_name, clock_name, strategy.name, scores[best_key])
    return consumed


def _normalized(names: Iterable[str]) -> dict[str, str]:
    keys = {}
    for name in names:
        try:
            key = normalize_name(name)
        except ValueError:
            logger.warning("Ignoring blank name during resolution")
            continue
        if key:
            keys[name] = key
    return keys


def resolve_names(
    task_names: Iterable[str],
    clock_names: Iterable[str],
    strategies: Optional[list] = None,
    similarity_threshold: float = SIMILARITY_THRESHOLD,
) -> NameResolution:
    """
    Produce a best-effort one-to-one mapping from task names to clock names.

    Args:
        task_names: Distinct assignee names from the task system
        clock_names: Distinct employee names from the time-clock system
        strategies: Optional strategy chain; defaults to exact, token subset,
            similarity
        similarity_threshold: Acceptance threshold for the default similarity
            strategy (ignored when strategies is given)

    Returns:
        NameResolution where every task name maps to a clock name or None
    """
    strategies = strategies if strategies is not None else default_strategies(similarity_threshold)

    task_keys = _normalized(set(task_names))
    clock_keys = _normalized(set(clock_names))

    matches: dict[str, Optional[str]] = {name: None for name in sorted(task_keys)}
    methods: dict[str, str] = {}
    consumed: set[str] = set()

    for strategy in strategies:
        consumed = _run_pass(strategy, task_keys, clock_keys, matches, methods, consumed)

    unmatched_task = [name for name, clock in matches.items() if clock is None]
    unmatched_clock = sorted(name for name in clock_keys if name not in consumed)
    logger.info(
        "Resolved %d of %d task names (%d clock names unclaimed)",
        len(matches) - len(unmatched_task),
        len(matches),
        len(unmatched_clock),
    )
    return NameResolution(
        matches=matches,
        methods=methods,
        unmatched_clock=unmatched_clock,
        unmatched_task=unmatched_task,
    )
