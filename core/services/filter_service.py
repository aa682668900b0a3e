"""Search and filter service for stamp records, decoupled from any UI toolkit."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.models import EXPERT_STATUSES, StampRecord

ALL_ALBUMS = "Alle"
ALL_STATUSES = "all"


@dataclass
class RecordFilter:
    """Current filter settings of the collection view.

    Attributes:
        search: Case-insensitive substring matched against name, origin and
            description. Empty matches everything.
        album: Album name, or `ALL_ALBUMS`.
        expert_status: One of the expert statuses, or `ALL_STATUSES`.
    """

    search: str = ""
    album: str = ALL_ALBUMS
    expert_status: str = ALL_STATUSES


class FilterService:
    """Apply a `RecordFilter` to record lists."""

    def matches(self, record: StampRecord, flt: RecordFilter) -> bool:
        """Return True if `record` passes every criterion of `flt`."""
        term = flt.search.strip().casefold()
        if term and not any(
            term in text.casefold() for text in (record.name, record.origin, record.description)
        ):
            return False
        if flt.album != ALL_ALBUMS and record.album != flt.album:
            return False
        if flt.expert_status != ALL_STATUSES and record.expert_status != flt.expert_status:
            return False
        return True

    def apply(self, records: Iterable[StampRecord], flt: RecordFilter) -> list[StampRecord]:
        """Return the records matching `flt`, keeping their order."""
        return [r for r in records if self.matches(r, flt)]

    def status_counts(self, records: Iterable[StampRecord]) -> dict[str, int]:
        """Count records per expert status, plus the `all` total."""
        counts = {ALL_STATUSES: 0, **{s: 0 for s in EXPERT_STATUSES}}
        for rec in records:
            counts[ALL_STATUSES] += 1
            if rec.expert_status in counts:
                counts[rec.expert_status] += 1
        return counts
