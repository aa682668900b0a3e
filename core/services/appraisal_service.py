"""Expert appraisal workflow over stamp records.

Status transitions:

    none -> pending          (request_appraisal)
    any  -> appraised        (submit_appraisal, repeat submissions allowed)
    pending -> none          (reject, requires confirmation)

Rejection keeps a previously stored expert valuation and note on the record.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from core.errors import InvalidStatusTransition
from core.models import STATUS_APPRAISED, STATUS_NONE, STATUS_PENDING, StampRecord
from core.services.collection_store import CollectionStore
from core.services.interfaces import ConfirmCallback

DEFAULT_EXPERT_NOTE = "Bestätigtes Original nach fachmännischer Begutachtung."


def request_appraisal(record: StampRecord) -> StampRecord:
    """Mark `record` as waiting for an expert.

    Raises:
        InvalidStatusTransition: If the record is not in status `none`.
    """
    if record.expert_status != STATUS_NONE:
        raise InvalidStatusTransition(record.expert_status, STATUS_PENDING)
    return replace(record, expert_status=STATUS_PENDING)


def submit_appraisal(
    record: StampRecord, valuation: str | None = None, note: str | None = None
) -> StampRecord:
    """Store an expert valuation on `record`.

    A blank valuation confirms the current AI estimate; a blank note is
    replaced by `DEFAULT_EXPERT_NOTE`.
    """
    valuation = (valuation or "").strip() or record.estimated_value
    note = (note or "").strip() or DEFAULT_EXPERT_NOTE
    return replace(
        record,
        expert_status=STATUS_APPRAISED,
        expert_valuation=valuation,
        expert_note=note,
    )


def reject_appraisal(record: StampRecord) -> StampRecord:
    """Reset a pending request to `none`, keeping any stored expert fields.

    Raises:
        InvalidStatusTransition: If the record is not pending.
    """
    if record.expert_status != STATUS_PENDING:
        raise InvalidStatusTransition(record.expert_status, STATUS_NONE)
    return replace(record, expert_status=STATUS_NONE)


class AppraisalService:
    """Applies workflow transitions to records held by a `CollectionStore`."""

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    def pending(self) -> list[StampRecord]:
        """Records waiting for an expert."""
        return [r for r in self._store.records if r.expert_status == STATUS_PENDING]

    def appraised(self) -> list[StampRecord]:
        """Records carrying an expert valuation."""
        return [r for r in self._store.records if r.expert_status == STATUS_APPRAISED]

    def request(self, record_id: str) -> StampRecord:
        """Submit `record_id` for expert review."""
        updated = request_appraisal(self._store.get(record_id))
        logger.info("Appraisal requested for {}", record_id)
        return self._store.update(updated)

    def submit(
        self, record_id: str, valuation: str | None = None, note: str | None = None
    ) -> StampRecord:
        """Record the expert's valuation and note for `record_id`."""
        updated = submit_appraisal(self._store.get(record_id), valuation, note)
        logger.info("Appraisal submitted for {}: {}", record_id, updated.expert_valuation)
        return self._store.update(updated)

    def reject(self, record_id: str, confirm: ConfirmCallback) -> StampRecord | None:
        """Reject the pending request for `record_id` after confirmation.

        Returns:
            The updated record, or None if the user declined.
        """
        record = self._store.get(record_id)
        updated = reject_appraisal(record)
        if not confirm(record):
            logger.info("Appraisal rejection declined for {}", record_id)
            return None
        logger.info("Appraisal rejected for {}", record_id)
        return self._store.update(updated)
