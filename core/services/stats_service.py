"""Dashboard statistics over the stamp collection."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from core.models import STATUS_APPRAISED, StampRecord
from core.services.interfaces import CollectionStats, OriginShare
from core.services.value_parser import effective_value, format_eur, parse_value

TOP_ORIGINS = 5


def compute_stats(records: Sequence[StampRecord]) -> CollectionStats:
    """Aggregate count, total value, appraisal count and origin distribution."""
    total = sum(parse_value(effective_value(r)) for r in records)
    appraised = sum(1 for r in records if r.expert_status == STATUS_APPRAISED)

    shares: list[OriginShare] = []
    if records:
        counts = Counter(r.origin for r in records)
        # most_common keeps first-seen order among equal counts
        for origin, count in counts.most_common(TOP_ORIGINS):
            shares.append(OriginShare(name=origin, percent=count / len(records) * 100))

    return CollectionStats(
        record_count=len(records),
        total_value=total,
        total_value_text=format_eur(total),
        appraised_count=appraised,
        top_origins=shares,
    )
