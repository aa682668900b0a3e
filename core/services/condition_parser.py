"""Keyword-anchored extraction of labeled sub-fields from condition texts."""

from __future__ import annotations

import re

from core.models import ConditionField

# Display order of the recognized categories
CONDITION_LABELS: tuple[str, ...] = (
    "Zähnung",
    "Zentrierung",
    "Stempel",
    "Erhaltung",
    "Status",
    "Mängel",
)

_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (label, re.compile(rf"{re.escape(label)}:?\s*([^.;]+)", re.IGNORECASE))
    for label in CONDITION_LABELS
)


def extract_condition_fields(text: str | None) -> list[ConditionField] | None:
    """Return the labeled fields found in `text` in category order.

    Returns None (not an empty list) when no category label occurs, so callers
    can fall back to showing the raw text.
    """
    if not text:
        return None
    results: list[ConditionField] = []
    for label, pattern in _PATTERNS:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            results.append(ConditionField(label=label, value=value))
    return results or None
