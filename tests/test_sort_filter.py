from __future__ import annotations

from core.services.filter_service import FilterService, RecordFilter
from core.services.sort_service import SortService
from tests.conftest import make_record

A = make_record(
    id="a",
    name="Posthorn",
    origin="Deutschland",
    year="1951",
    estimated_value="10,00 €",
    expert_valuation="€900",
    expert_status="appraised",
    date_added="2024-01-01T00:00:00.000Z",
    album="Europa",
    description="Dauerserie",
)
B = make_record(
    id="b",
    name="Penny Black",
    origin="Großbritannien",
    year="1840",
    estimated_value="1.500,00 €",
    date_added="2024-02-01T00:00:00.000Z",
    album="Übersee",
    description="Die erste Briefmarke der Welt",
)
C = make_record(
    id="c",
    name="Inverted Jenny",
    origin="USA",
    year="ca. 1918",
    estimated_value="€ 50",
    expert_valuation="  ",
    expert_status="pending",
    date_added="2024-03-01T00:00:00.000Z",
    description="Fehldruck mit kopfstehendem Flugzeug",
)


def ids(records):
    return [r.id for r in records]


def test_value_sort_uses_expert_valuation_for_every_record():
    sorter = SortService()
    assert ids(sorter.sort([A, B, C], "estimatedValue", ascending=True)) == ["c", "a", "b"]
    assert ids(sorter.sort([C, B, A], "estimatedValue", ascending=False)) == ["b", "a", "c"]


def test_default_sort_is_date_added_descending():
    assert ids(SortService().sort([A, B, C])) == ["c", "b", "a"]


def test_sort_by_year_name_and_origin():
    sorter = SortService()
    assert ids(sorter.sort([A, B, C], "year", ascending=True)) == ["b", "c", "a"]
    assert ids(sorter.sort([A, B, C], "name", ascending=True)) == ["c", "b", "a"]
    assert ids(sorter.sort([A, B, C], "origin", ascending=True)) == ["a", "b", "c"]


def test_date_added_breaks_ties():
    x = make_record(id="x", name="Gleich", date_added="2024-01-02T00:00:00.000Z")
    y = make_record(id="y", name="Gleich", date_added="2024-01-01T00:00:00.000Z")
    assert ids(SortService().sort([x, y], "name", ascending=True)) == ["y", "x"]


def test_unknown_sort_field_falls_back_to_date():
    assert ids(SortService().sort([A, C, B], "bogus")) == ["c", "b", "a"]


def test_search_matches_name_origin_and_description_case_insensitively():
    svc = FilterService()
    assert ids(svc.apply([A, B, C], RecordFilter(search="usa"))) == ["c"]
    assert ids(svc.apply([A, B, C], RecordFilter(search="ERSTE"))) == ["b"]
    assert ids(svc.apply([A, B, C], RecordFilter(search="post"))) == ["a"]


def test_album_and_status_filters_combine():
    svc = FilterService()
    assert ids(svc.apply([A, B, C], RecordFilter(album="Europa"))) == ["a"]
    assert ids(svc.apply([A, B, C], RecordFilter(expert_status="pending"))) == ["c"]
    assert svc.apply([A, B, C], RecordFilter(album="Europa", expert_status="none")) == []


def test_status_counts():
    assert FilterService().status_counts([A, B, C]) == {
        "all": 3,
        "none": 1,
        "pending": 1,
        "appraised": 1,
    }
