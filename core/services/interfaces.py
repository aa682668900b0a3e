"""Core service interfaces and shared data structures.

This module defines the ports the core depends on (durable storage and the
AI analysis service) and small dataclasses exchanged with the UI layer.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from core.models import AnalysisResult, StampRecord

ConfirmCallback = Callable[[StampRecord], bool]
"""Asked before an irreversible change; returns True when the user agrees."""


@dataclass
class OriginShare:
    """Share of the collection coming from one origin.

    Attributes:
        name: Origin as stored on the records.
        percent: Percentage of all records (0-100).
    """

    name: str
    percent: float


@dataclass
class CollectionStats:
    """Aggregated figures shown on the dashboard.

    Attributes:
        record_count: Number of records in the collection.
        total_value: Sum of effective values.
        total_value_text: `total_value` formatted for display.
        appraised_count: Records with expert status `appraised`.
        top_origins: Up to five origins with the largest share.
    """

    record_count: int
    total_value: float
    total_value_text: str
    appraised_count: int
    top_origins: list[OriginShare]


class ICollectionRepository:
    """Interface for durable storage of the collection.

    Records and album names live under two independent entries. Loaders return
    None when the entry is missing or cannot be deserialized.
    """

    def load_records(self) -> list[StampRecord] | None:
        """Return all stored records in display order."""
        raise NotImplementedError

    def save_records(self, records: list[StampRecord]) -> None:
        """Persist the full record list, replacing the stored one."""
        raise NotImplementedError

    def load_albums(self) -> list[str] | None:
        """Return the stored album names."""
        raise NotImplementedError

    def save_albums(self, albums: list[str]) -> None:
        """Persist the full album list, replacing the stored one."""
        raise NotImplementedError


class IStampAnalyzer:
    """Interface for the external AI analysis service."""

    async def analyze(
        self,
        image: str,
        prior_record: StampRecord | None = None,
        *,
        keywords: str | None = None,
        quality_hint: str | None = None,
        deep_analysis: bool = False,
    ) -> AnalysisResult:
        """Identify and appraise the stamp shown in `image` (a data URI)."""
        raise NotImplementedError
