"""ViewModel for the collection: filtering, sorting, comparison and re-analysis."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from loguru import logger

from core.models import AnalysisResult, StampRecord
from core.services.collection_store import CollectionStore
from core.services.comparison_service import ComparisonService
from core.services.filter_service import FilterService, RecordFilter
from core.services.interfaces import CollectionStats, ConfirmCallback, IStampAnalyzer
from core.services.sort_service import SortService
from core.services.stats_service import compute_stats
from infrastructure.json_export import export_collection


def merge_analysis(record: StampRecord, result: AnalysisResult) -> StampRecord:
    """Apply a re-analysis `result` to `record`.

    Descriptive fields are overwritten. An existing expert valuation stays the
    record's estimated value; optional fields missing from `result` keep their
    previous value.
    """
    return replace(
        record,
        name=result.name,
        origin=result.origin,
        year=result.year,
        rarity=result.rarity,
        condition=result.condition,
        description=result.description,
        estimated_value=(
            record.expert_valuation or result.estimated_value or record.estimated_value
        ),
        historical_context=result.historical_context or record.historical_context,
        printing_method=result.printing_method or record.printing_method,
        paper_type=result.paper_type or record.paper_type,
        cancellation_type=result.cancellation_type or record.cancellation_type,
    )


class MainVM:
    """Main collection view-model.

    Mediates between the `CollectionStore`, the analysis service and the
    collection, comparison and dashboard views.
    """

    def __init__(
        self,
        store: CollectionStore,
        analyzer: IStampAnalyzer | None = None,
        sorter: SortService | None = None,
        default_sort: tuple[str, bool] | None = None,
    ) -> None:
        """Create a MainVM.

        Args:
            store: Collection store owning records and albums.
            analyzer: Analysis service used for re-analysis.
            sorter: Sorting service (defaults to `SortService`).
            default_sort: (field, ascending) applied initially.
        """
        self._store = store
        self._analyzer = analyzer
        self._sorter = sorter or SortService()
        self._filter_service = FilterService()
        self.compare = ComparisonService()
        self.filter = RecordFilter()
        self.sort_field, self.sort_ascending = default_sort or ("dateAdded", False)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    @property
    def albums(self) -> list[str]:
        return self._store.albums

    def visible_records(self) -> list[StampRecord]:
        """Records passing the current filter, in the current sort order."""
        matched = self._filter_service.apply(self._store.records, self.filter)
        return self._sorter.sort(matched, self.sort_field, self.sort_ascending)

    def set_sort(self, field: str, ascending: bool | None = None) -> None:
        """Sort by `field`; toggles direction when re-selecting the same field."""
        if ascending is None:
            ascending = not self.sort_ascending if field == self.sort_field else False
        self.sort_field = field
        self.sort_ascending = ascending

    def status_counts(self) -> dict[str, int]:
        return self._filter_service.status_counts(self._store.records)

    def stats(self) -> CollectionStats:
        return compute_stats(self._store.records)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_album(self, name: str) -> bool:
        return self._store.add_album(name)

    def delete(self, record_id: str, confirm: ConfirmCallback) -> bool:
        """Delete a record after confirmation; also drops it from the comparison."""
        deleted = self._store.remove(record_id, confirm)
        if deleted and record_id in self.compare.selected_ids:
            self.compare.toggle(record_id)
        return deleted

    async def refresh_analysis(
        self, record_id: str, keywords: str | None = None, deep_analysis: bool = False
    ) -> StampRecord:
        """Re-analyze a stored record and save the merged result.

        Raises:
            AnalysisError: If the analysis fails; the record is left unchanged.
            RecordNotFound: If `record_id` is unknown.
        """
        if self._analyzer is None:
            raise RuntimeError("No analyzer configured")
        record = self._store.get(record_id)
        result = await self._analyzer.analyze(
            record.image,
            record,
            keywords=(keywords or "").strip() or None,
            deep_analysis=deep_analysis,
        )
        # The record may have changed while the request was in flight
        current = self._store.get(record_id)
        updated = merge_analysis(current, result)
        logger.info("Re-analysis applied to {} (deep={})", record_id, deep_analysis)
        return self._store.update(updated)

    # ------------------------------------------------------------------
    # Comparison and export
    # ------------------------------------------------------------------
    def compared_records(self) -> list[StampRecord]:
        return self.compare.selected(self._store.records)

    def diverse_fields(self) -> dict[str, bool]:
        return self.compare.diverse_fields(self.compared_records())

    def export(self, out_dir: str | Path) -> Path:
        """Write the whole collection to a dated JSON backup."""
        return export_collection(self._store.records, out_dir)
