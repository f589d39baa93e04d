"""
Person name normalization for cross-system matching.

Handles:
- Case, surrounding and repeated whitespace
- Periods, commas and other punctuation that is not part of a name
- Payroll style "Last, First M." -> "first m last"
- Generational suffixes after a comma ("Smith, Jr.") are dropped

Ambiguity is left to the resolver: "Maria G" and "Maria Gonzalez" still
normalize to different keys.
"""

from __future__ import annotations

import re

_SUFFIXES = {"jr", "sr", "ii", "iii", "iv"}
_NON_NAME_CHARS = re.compile(r"[^\w\s'\-]")


def normalize_name(name: str) -> str:
    """Return the canonical comparison key for a raw person name."""

    if not name or not name.strip():
        raise ValueError("Cannot normalize an empty name")

    name = name.strip().lower()

    if name.count(",") == 1:
        before, after = (part.strip() for part in name.split(","))
        after_key = _NON_NAME_CHARS.sub("", after).strip()
        if after_key in _SUFFIXES:
            name = before
        elif before and after:
            name = f"{after} {before}"

    name = _NON_NAME_CHARS.sub(" ", name)
    name = name.replace("_", " ")
    return re.sub(r"\s+", " ", name).strip()


def name_tokens(name: str) -> tuple[str, ...]:
    """Split an already-normalized name into tokens."""

    return tuple(name.split())
