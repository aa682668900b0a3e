"""Sorting service for stamp record lists.

The service orders records by one display field, ascending or descending,
using `date_added` as tie-break, without mutating the input list.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from core.models import StampRecord
from core.services.value_parser import effective_value, extract_year, parse_value

SORT_FIELDS: tuple[str, ...] = (
    "name",
    "estimatedValue",
    "year",
    "origin",
    "dateAdded",
    "condition",
)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def parse_date_added(value: str | None) -> datetime:
    """Parse an ISO-8601 `date_added`; unparseable values sort first."""
    if not value:
        return _EPOCH
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


_KEYS: dict[str, Callable[[StampRecord], Any]] = {
    "name": lambda r: r.name.casefold(),
    # Expert valuation wins for every record in the comparison
    "estimatedValue": lambda r: parse_value(effective_value(r)),
    "year": lambda r: extract_year(r.year),
    "origin": lambda r: r.origin.casefold(),
    "condition": lambda r: r.condition.casefold(),
    "dateAdded": lambda r: parse_date_added(r.date_added),
}


class SortService:
    """Provides sorting utilities for `StampRecord` lists."""

    def sort(
        self, records: Iterable[StampRecord], field: str = "dateAdded", ascending: bool = False
    ) -> list[StampRecord]:
        """Return `records` ordered by `field`.

        Args:
            records: Records to sort.
            field: One of `SORT_FIELDS`; unknown names fall back to `dateAdded`.
            ascending: Sort direction; the tie-break follows the same direction.
        """
        key = _KEYS.get(field, _KEYS["dateAdded"])
        return sorted(
            records,
            key=lambda r: (key(r), parse_date_added(r.date_added)),
            reverse=not ascending,
        )
