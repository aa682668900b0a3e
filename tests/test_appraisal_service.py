from __future__ import annotations

import pytest

from core.errors import InvalidStatusTransition, RecordNotFound
from core.services.appraisal_service import (
    DEFAULT_EXPERT_NOTE,
    AppraisalService,
    reject_appraisal,
    request_appraisal,
    submit_appraisal,
)
from tests.conftest import make_record


def test_submit_falls_back_to_estimate_and_default_note():
    rec = submit_appraisal(make_record(), valuation="  ", note="")
    assert rec.expert_status == "appraised"
    assert rec.expert_valuation == "1.250,00 €"
    assert rec.expert_note == DEFAULT_EXPERT_NOTE


def test_submit_can_be_repeated():
    first = submit_appraisal(make_record(), "€500", "Echt")
    second = submit_appraisal(first, "€650", "Neu bewertet")
    assert second.expert_status == "appraised"
    assert second.expert_valuation == "€650"


def test_request_only_from_none():
    assert request_appraisal(make_record()).expert_status == "pending"
    with pytest.raises(InvalidStatusTransition):
        request_appraisal(make_record(expert_status="pending"))


def test_reject_keeps_stale_expert_fields():
    rec = make_record(expert_status="pending", expert_valuation="€500", expert_note="alt")
    rejected = reject_appraisal(rec)
    assert rejected.expert_status == "none"
    assert rejected.expert_valuation == "€500"
    assert rejected.expert_note == "alt"


def test_reject_requires_pending():
    with pytest.raises(InvalidStatusTransition):
        reject_appraisal(make_record(expert_status="appraised"))


def test_service_applies_transitions_to_store(store, repo, yes, no):
    store.add(make_record())
    svc = AppraisalService(store)

    svc.request("rec1")
    assert [r.id for r in svc.pending()] == ["rec1"]

    assert svc.reject("rec1", no) is None
    assert store.get("rec1").expert_status == "pending"

    assert svc.reject("rec1", yes).expert_status == "none"

    svc.submit("rec1", "€500", "Geprüft")
    assert [r.id for r in svc.appraised()] == ["rec1"]
    assert repo.records[0].expert_valuation == "€500"


def test_service_unknown_record(store):
    with pytest.raises(RecordNotFound):
        AppraisalService(store).submit("missing")
