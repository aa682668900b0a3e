"""JSON persistence for the stamp collection and album names.

Each storage key maps to one `<key>.json` document inside the storage
directory. Reads never raise: a missing or unreadable entry yields None so the
store keeps its defaults. Writes replace the document atomically.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any

from loguru import logger

from core.errors import StorageError
from core.models import StampRecord
from core.services.interfaces import ICollectionRepository

COLLECTION_KEY = "stamp_collection"
ALBUMS_KEY = "stamp_albums"


class JsonCollectionRepository(ICollectionRepository):
    """Load and save the collection as JSON documents in a directory."""

    def __init__(
        self,
        storage_dir: str | Path,
        collection_key: str = COLLECTION_KEY,
        albums_key: str = ALBUMS_KEY,
    ) -> None:
        self._dir = Path(storage_dir).expanduser()
        self._collection_key = collection_key
        self._albums_key = albums_key

    def path_for(self, key: str) -> Path:
        """Return the file backing storage `key`."""
        return self._dir / f"{key}.json"

    # ------------------------------------------------------------------
    # Raw key-value access
    # ------------------------------------------------------------------
    def _read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            logger.info("Storage entry missing: {}", path)
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as ex:
            logger.error("Error loading {}: {}", path, ex)
            return None

    def _write(self, key: str, payload: Any) -> None:
        path = self.path_for(key)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as ex:
            logger.error("Write {} failed: {}", path, ex)
            raise StorageError(f"Speichern fehlgeschlagen: {path}", cause=ex) from ex

    # ------------------------------------------------------------------
    # ICollectionRepository
    # ------------------------------------------------------------------
    def load_records(self) -> list[StampRecord] | None:
        data = self._read(self._collection_key)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.error("Error loading collection: expected a list, got {}", type(data).__name__)
            return None

        records: list[StampRecord] = []
        seen: set[str] = set()
        for row in data:
            try:
                rec = StampRecord.from_dict(row)
            except (ValueError, TypeError) as ex:
                logger.error("Collection row error: {} | row={}", ex, _short(row))
                continue
            if rec.id in seen:
                logger.warning("Duplicate record id skipped: {}", rec.id)
                continue
            seen.add(rec.id)
            records.append(rec)
        return records

    def save_records(self, records: list[StampRecord]) -> None:
        self._write(self._collection_key, [r.to_dict() for r in records])

    def load_albums(self) -> list[str] | None:
        data = self._read(self._albums_key)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.error("Error loading albums: expected a list, got {}", type(data).__name__)
            return None
        albums: list[str] = []
        for name in data:
            if isinstance(name, str) and name and name not in albums:
                albums.append(name)
        return albums

    def save_albums(self, albums: list[str]) -> None:
        self._write(self._albums_key, list(albums))


def _short(row: Any) -> str:
    """Compact row description for logs; embedded images are elided."""
    if isinstance(row, dict):
        return str({k: ("<image>" if k == "image" else v) for k, v in row.items()})
    return repr(row)[:200]
