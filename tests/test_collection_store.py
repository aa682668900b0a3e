from __future__ import annotations

from dataclasses import replace
import string

import pytest

from core.errors import RecordNotFound, StorageError
from core.services.appraisal_service import AppraisalService
from core.services.collection_store import DEFAULT_ALBUMS, CollectionStore
from infrastructure.json_repository import JsonCollectionRepository
from tests.conftest import InMemoryRepository, make_record


def test_defaults_when_storage_empty(store):
    assert store.records == []
    assert store.albums == list(DEFAULT_ALBUMS)


def test_add_prepends_and_generates_id_and_date(store, repo):
    first = store.add(make_record(id="", date_added=""))
    second = store.add(make_record(id="", date_added="", name="Zweite"))

    assert first.id and second.id and first.id != second.id
    assert first.date_added.endswith("Z")
    assert first.expert_status == "none"
    assert [r.id for r in store.records] == [second.id, first.id]
    assert repo.records == store.records
    assert repo.record_saves == 2


def test_add_keeps_given_id_and_rejects_duplicates(store):
    store.add(make_record(id="abc"))
    with pytest.raises(ValueError):
        store.add(make_record(id="abc"))


def test_update_replaces_record_wholesale(store, repo):
    store.add(make_record())
    updated = store.update(replace(store.get("rec1"), name="Neu", rarity="Häufig"))

    assert store.get("rec1") == updated
    assert repo.records[0].name == "Neu"


def test_generated_id_is_nine_char_base36(store):
    rec = store.add(make_record(id=""))
    assert len(rec.id) == 9
    assert set(rec.id) <= set(string.digits + string.ascii_lowercase)


def test_add_always_starts_without_appraisal(store, repo):
    rec = store.add(make_record(id="", expert_status="appraised", expert_valuation="€9"))
    assert rec.expert_status == "none"
    assert store.get(rec.id).expert_status == "none"
    assert repo.records[0].expert_status == "none"


def test_update_keeps_image_and_date_added(store, repo):
    original = store.add(make_record())
    updated = store.update(
        replace(original, name="Neu", image="data:x", date_added="1999-01-01T00:00:00Z")
    )

    assert updated.name == "Neu"
    assert updated.image == original.image
    assert updated.date_added == "2024-01-01T10:00:00.000Z"
    assert store.get("rec1") == updated
    assert repo.records[0].image == original.image


def test_update_unknown_id_raises(store):
    with pytest.raises(RecordNotFound):
        store.update(make_record(id="missing"))


def test_remove_requires_confirmation(store, repo, yes, no):
    store.add(make_record())
    saves = repo.record_saves

    assert store.remove("rec1", no) is False
    assert len(store) == 1
    assert repo.record_saves == saves

    assert store.remove("rec1", yes) is True
    assert store.records == []
    assert repo.records == []


def test_remove_unknown_id_raises(store, yes):
    with pytest.raises(RecordNotFound):
        store.remove("nope", yes)


def test_add_album_ignores_empty_and_duplicates(store, repo):
    assert store.add_album("  Deutsches Reich ") is True
    assert store.add_album("Europa") is False
    assert store.add_album("   ") is False
    assert store.albums[-1] == "Deutsches Reich"
    assert repo.albums == store.albums
    assert repo.album_saves == 1


def test_failed_write_leaves_state_unchanged():
    class FailingRepo(InMemoryRepository):
        def save_records(self, records):
            raise StorageError("disk full")

    store = CollectionStore(FailingRepo())
    with pytest.raises(StorageError):
        store.add(make_record())
    assert store.records == []


def test_round_trip_through_json_storage(tmp_path):
    store = CollectionStore(JsonCollectionRepository(tmp_path))
    store.add(make_record())
    record = AppraisalService(store).submit("rec1", "€500", "Echt")
    store.add_album("Briefe")

    restored = CollectionStore(JsonCollectionRepository(tmp_path))
    assert restored.records == [record]
    assert restored.albums == [*DEFAULT_ALBUMS, "Briefe"]


def test_corrupted_storage_yields_defaults(tmp_path):
    (tmp_path / "stamp_collection.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "stamp_albums.json").write_text('{"a": 1}', encoding="utf-8")

    store = CollectionStore(JsonCollectionRepository(tmp_path))
    assert store.records == []
    assert store.albums == list(DEFAULT_ALBUMS)
