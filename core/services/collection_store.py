"""In-memory collection of stamp records and album names.

The store is the only owner of the record and album lists. Every mutation
writes the affected list through the injected repository before the new state
becomes visible, so a failed write leaves the in-memory state unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import string
import uuid

from loguru import logger

from core.errors import RecordNotFound
from core.models import STATUS_NONE, StampRecord
from core.services.interfaces import ConfirmCallback, ICollectionRepository

DEFAULT_ALBUMS: tuple[str, ...] = ("Allgemein", "Europa", "Übersee", "Seltenheiten")
ID_LENGTH = 9
_BASE36 = string.digits + string.ascii_lowercase


def _new_id() -> str:
    """Random lowercase base36 id of `ID_LENGTH` characters."""
    n = uuid.uuid4().int
    chars = []
    for _ in range(ID_LENGTH):
        n, rem = divmod(n, 36)
        chars.append(_BASE36[rem])
    return "".join(chars)


def _now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and `Z` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CollectionStore:
    """Ordered stamp collection (most recent first) plus album names."""

    def __init__(
        self,
        repo: ICollectionRepository,
        default_albums: list[str] | tuple[str, ...] | None = None,
    ) -> None:
        """Create the store and load both storage entries once.

        Args:
            repo: Durable storage port.
            default_albums: Starter albums used when none are stored.
        """
        self._repo = repo
        self._records: list[StampRecord] = []
        self._albums: list[str] = list(default_albums or DEFAULT_ALBUMS)
        self._load()

    def _load(self) -> None:
        records = self._repo.load_records()
        if records is not None:
            self._records = records
        albums = self._repo.load_albums()
        if albums is not None:
            self._albums = albums
        logger.info(
            "Collection loaded: {} records, {} albums", len(self._records), len(self._albums)
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def records(self) -> list[StampRecord]:
        """Copy of all records in display order."""
        return list(self._records)

    @property
    def albums(self) -> list[str]:
        """Copy of the album names in creation order."""
        return list(self._albums)

    def get(self, record_id: str) -> StampRecord:
        """Return the record with `record_id`.

        Raises:
            RecordNotFound: If no such record exists.
        """
        for rec in self._records:
            if rec.id == record_id:
                return rec
        raise RecordNotFound(record_id)

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, record: StampRecord) -> StampRecord:
        """Prepend `record`, assigning `id` and `date_added` when unset.

        Every new record starts without an expert appraisal: the status is
        reset to `none` whatever `record` carries.

        Returns:
            The stored record (with generated fields filled in).

        Raises:
            ValueError: If a record with the same id already exists.
        """
        existing = {r.id for r in self._records}
        if record.id and record.id in existing:
            raise ValueError(f"Duplicate record id: {record.id}")
        record_id = record.id
        while not record_id or record_id in existing:
            record_id = _new_id()
        stored = replace(
            record,
            id=record_id,
            date_added=record.date_added or _now_iso(),
            expert_status=STATUS_NONE,
        )
        new_records = [stored, *self._records]
        self._repo.save_records(new_records)
        self._records = new_records
        logger.info("Record added: {} ({})", stored.id, stored.name)
        return stored

    def update(self, record: StampRecord) -> StampRecord:
        """Replace the record with the same id wholesale.

        `image` and `date_added` are fixed at creation and always keep their
        stored values.

        Returns:
            The stored record.

        Raises:
            RecordNotFound: If no record has `record.id`.
        """
        current = self.get(record.id)
        if record.image != current.image or record.date_added != current.date_added:
            logger.warning("Ignoring image/dateAdded change on update of {}", record.id)
        stored = replace(record, image=current.image, date_added=current.date_added)
        new_records = [stored if r.id == stored.id else r for r in self._records]
        self._repo.save_records(new_records)
        self._records = new_records
        logger.info("Record updated: {} ({})", stored.id, stored.name)
        return stored

    def remove(self, record_id: str, confirm: ConfirmCallback) -> bool:
        """Delete a record after explicit confirmation.

        Deletion is irreversible. `confirm` receives the record and must
        return True for the delete to happen.

        Returns:
            True if the record was deleted, False if the user declined.

        Raises:
            RecordNotFound: If no record has `record_id`.
        """
        target = self.get(record_id)
        if not confirm(target):
            logger.info("Delete declined for {}", record_id)
            return False
        new_records = [r for r in self._records if r.id != record_id]
        self._repo.save_records(new_records)
        self._records = new_records
        logger.info("Record deleted: {} ({})", record_id, target.name)
        return True

    def add_album(self, name: str) -> bool:
        """Append album `name` unless it is empty or already present.

        Returns:
            True if the album was added.
        """
        name = (name or "").strip()
        if not name or name in self._albums:
            return False
        new_albums = [*self._albums, name]
        self._repo.save_albums(new_albums)
        self._albums = new_albums
        logger.info("Album added: {}", name)
        return True
