"""Side-by-side comparison of a user-selected set of records."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from core.models import StampRecord
from core.services.value_parser import effective_value

COMPARED_FIELDS: dict[str, Callable[[StampRecord], str]] = {
    "value": effective_value,
    "origin": lambda r: r.origin,
    "year": lambda r: r.year,
    "condition": lambda r: r.condition,
    "rarity": lambda r: r.rarity,
    "printing": lambda r: r.printing_method or "",
    "paper": lambda r: r.paper_type or "",
}


class ComparisonService:
    """Keeps the ordered compare selection and reports differing fields."""

    def __init__(self) -> None:
        self._ids: list[str] = []

    @property
    def selected_ids(self) -> list[str]:
        """Selected record ids in selection order."""
        return list(self._ids)

    def toggle(self, record_id: str) -> bool:
        """Add or remove `record_id` from the selection.

        Returns:
            True if the id is selected afterwards.
        """
        if record_id in self._ids:
            self._ids.remove(record_id)
            return False
        self._ids.append(record_id)
        return True

    def clear(self) -> None:
        """Drop the whole selection."""
        self._ids.clear()

    def selected(self, records: Iterable[StampRecord]) -> list[StampRecord]:
        """Return the selected records in collection order; unknown ids are skipped."""
        wanted = set(self._ids)
        return [r for r in records if r.id in wanted]

    @staticmethod
    def diverse_fields(records: list[StampRecord]) -> dict[str, bool]:
        """Flag each compared field whose value differs between the records.

        With fewer than two records nothing is considered diverse.
        """
        result: dict[str, bool] = {}
        for name, getter in COMPARED_FIELDS.items():
            if len(records) <= 1:
                result[name] = False
                continue
            first = getter(records[0])
            result[name] = not all(getter(r) == first for r in records)
        return result
