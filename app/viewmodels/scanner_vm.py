"""ViewModel for the scan workflow: photograph -> analysis -> saved record."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from core.errors import AnalysisError
from core.models import AnalysisResult, StampRecord
from core.services.collection_store import CollectionStore
from core.services.interfaces import IStampAnalyzer
from infrastructure.image_service import load_image_data_uri

SCAN_QUALITY_HINT = "Fokus auf philatelistische Details"


class ScannerVM:
    """Holds the state of one scan: image, result or error, target album."""

    def __init__(self, store: CollectionStore, analyzer: IStampAnalyzer) -> None:
        self._store = store
        self._analyzer = analyzer
        self.image: str | None = None
        self.result: AnalysisResult | None = None
        self.error: AnalysisError | None = None
        albums = store.albums
        self.album: str = albums[0] if albums else "Allgemein"

    def load_image(self, path: str | Path) -> None:
        """Load a photograph and reset any previous result or error."""
        self.set_image(load_image_data_uri(path))

    def set_image(self, image: str) -> None:
        """Use an already encoded data URI as the scan image."""
        self.image = image
        self.result = None
        self.error = None

    async def analyze(
        self, keywords: str | None = None, deep_analysis: bool = True
    ) -> AnalysisResult | None:
        """Run the initial analysis of the loaded image.

        Failures are kept in `error` (not raised) so the view can offer retry
        or start over.

        Returns:
            The result, or None on failure.
        """
        if self.image is None:
            raise ValueError("No image loaded")
        self.error = None
        self.result = None
        try:
            self.result = await self._analyzer.analyze(
                self.image,
                None,
                keywords=(keywords or "").strip() or None,
                quality_hint=SCAN_QUALITY_HINT,
                deep_analysis=deep_analysis,
            )
        except AnalysisError as ex:
            logger.warning("Scan analysis failed [{}]: {}", ex.category, ex.message)
            self.error = ex
        return self.result

    def save(self, album: str | None = None) -> StampRecord:
        """Store the analyzed stamp in the collection.

        Raises:
            ValueError: If there is no image or no successful result.
        """
        if self.image is None or self.result is None:
            raise ValueError("Nothing to save: analyze an image first")
        res = self.result
        record = StampRecord(
            image=self.image,
            name=res.name,
            origin=res.origin,
            year=res.year,
            estimated_value=res.estimated_value,
            rarity=res.rarity,
            condition=res.condition,
            description=res.description,
            album=album or self.album,
            historical_context=res.historical_context,
            printing_method=res.printing_method,
            paper_type=res.paper_type,
            cancellation_type=res.cancellation_type,
        )
        stored = self._store.add(record)
        self.reset()
        return stored

    def reset(self) -> None:
        """Start over: drop image, result and error."""
        self.image = None
        self.result = None
        self.error = None
