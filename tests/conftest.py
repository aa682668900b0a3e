from __future__ import annotations

import base64
from dataclasses import replace
from types import SimpleNamespace
from typing import Any

import pytest

from core.models import AnalysisResult, StampRecord
from core.services.collection_store import CollectionStore
from core.services.interfaces import ICollectionRepository, IStampAnalyzer

IMAGE_URI = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8fake-jpeg").decode("ascii")


class InMemoryRepository(ICollectionRepository):
    """Repository fake keeping the last saved lists in memory."""

    def __init__(
        self, records: list[StampRecord] | None = None, albums: list[str] | None = None
    ) -> None:
        self.records = records
        self.albums = albums
        self.record_saves = 0
        self.album_saves = 0

    def load_records(self) -> list[StampRecord] | None:
        return list(self.records) if self.records is not None else None

    def save_records(self, records: list[StampRecord]) -> None:
        self.records = list(records)
        self.record_saves += 1

    def load_albums(self) -> list[str] | None:
        return list(self.albums) if self.albums is not None else None

    def save_albums(self, albums: list[str]) -> None:
        self.albums = list(albums)
        self.album_saves += 1


class FakeAnalyzer(IStampAnalyzer):
    """Analyzer returning a canned result or raising a canned error."""

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None):
        self.result = result or make_result()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def analyze(
        self,
        image: str,
        prior_record: StampRecord | None = None,
        *,
        keywords: str | None = None,
        quality_hint: str | None = None,
        deep_analysis: bool = False,
    ) -> AnalysisResult:
        self.calls.append(
            {
                "image": image,
                "prior_record": prior_record,
                "keywords": keywords,
                "quality_hint": quality_hint,
                "deep_analysis": deep_analysis,
            }
        )
        if self.error is not None:
            raise self.error
        return self.result


def make_record(**overrides: Any) -> StampRecord:
    base = StampRecord(
        image=IMAGE_URI,
        name="Schwarzer Einser",
        origin="Bayern",
        year="1849",
        estimated_value="1.250,00 €",
        rarity="Selten",
        condition="Zähnung: geschnitten; Stempel: Mühlradstempel",
        description="Erste Briefmarke Bayerns.",
        album="Allgemein",
        id="rec1",
        date_added="2024-01-01T10:00:00.000Z",
    )
    return replace(base, **overrides)


def make_result(**overrides: Any) -> AnalysisResult:
    base = AnalysisResult(
        name="Posthorn",
        origin="Deutschland",
        year="1951",
        estimated_value="45,00 €",
        rarity="Gesucht",
        condition="Erhaltung: postfrisch",
        description="Posthornsatz der Bundesrepublik.",
    )
    return replace(base, **overrides)


def fake_genai_client(text: str | None = None, error: Exception | None = None, **response_attrs):
    """Object shaped like `genai.Client` for `client.aio.models.generate_content`."""
    calls: list[dict[str, Any]] = []

    async def generate_content(**kwargs: Any) -> Any:
        calls.append(kwargs)
        if error is not None:
            raise error
        return SimpleNamespace(text=text, **response_attrs)

    models = SimpleNamespace(generate_content=generate_content, calls=calls)
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def store(repo: InMemoryRepository) -> CollectionStore:
    return CollectionStore(repo)


@pytest.fixture
def yes():
    return lambda record: True


@pytest.fixture
def no():
    return lambda record: False
