from __future__ import annotations

import pytest

from core.services.comparison_service import ComparisonService
from core.services.stats_service import compute_stats
from tests.conftest import make_record


def test_toggle_keeps_selection_order():
    svc = ComparisonService()
    assert svc.toggle("b") is True
    assert svc.toggle("a") is True
    assert svc.selected_ids == ["b", "a"]
    assert svc.toggle("b") is False
    assert svc.selected_ids == ["a"]


def test_selected_skips_unknown_ids():
    svc = ComparisonService()
    svc.toggle("rec1")
    svc.toggle("gone")
    assert [r.id for r in svc.selected([make_record()])] == ["rec1"]


def test_diverse_fields():
    a = make_record(id="a", printing_method="Offset")
    b = make_record(id="b", year="1850", expert_valuation="1.250,00 €")
    flags = ComparisonService.diverse_fields([a, b])
    assert flags["year"] is True
    assert flags["printing"] is True
    # same effective value string on both records
    assert flags["value"] is False
    assert flags["origin"] is False


def test_single_record_is_never_diverse():
    flags = ComparisonService.diverse_fields([make_record()])
    assert not any(flags.values())


def test_stats():
    records = [
        make_record(id="a", origin="Bayern", estimated_value="1.000,00 €"),
        make_record(
            id="b",
            origin="Bayern",
            estimated_value="5 €",
            expert_status="appraised",
            expert_valuation="250,50 €",
        ),
        make_record(id="c", origin="Sachsen", estimated_value="kein Wert"),
        make_record(id="d", origin="Baden", estimated_value="10"),
    ]
    stats = compute_stats(records)

    assert stats.record_count == 4
    assert stats.total_value == pytest.approx(1260.5)
    assert stats.total_value_text == "€1.260,50"
    assert stats.appraised_count == 1
    assert stats.top_origins[0].name == "Bayern"
    assert stats.top_origins[0].percent == pytest.approx(50.0)
    assert [o.name for o in stats.top_origins] == ["Bayern", "Sachsen", "Baden"]


def test_stats_of_empty_collection():
    stats = compute_stats([])
    assert stats.record_count == 0
    assert stats.total_value_text == "€0,00"
    assert stats.top_origins == []
