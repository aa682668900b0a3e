from __future__ import annotations

import pytest

from core.services.value_parser import effective_value, extract_year, format_eur, parse_value
from tests.conftest import make_record


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1.250,00", 1250.0),
        ("1,250.00", 1250.0),
        ("42,50", 42.5),
        ("1.250,00 €", 1250.0),
        ("€500", 500.0),
        ("12.50 EUR", 12.5),
        ("-3,5", -3.5),
        ("12-15 €", 12.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("-", 0.0),
    ],
)
def test_parse_value(text, expected):
    assert parse_value(text) == pytest.approx(expected)


def test_effective_value_prefers_non_blank_expert_valuation():
    assert effective_value(make_record(expert_valuation="€500")) == "€500"
    assert effective_value(make_record(expert_valuation="   ")) == "1.250,00 €"
    assert effective_value(make_record(expert_valuation=None)) == "1.250,00 €"


def test_format_eur_uses_german_grouping():
    assert format_eur(1234.5) == "€1.234,50"
    assert format_eur(0) == "€0,00"


def test_extract_year():
    assert extract_year("ca. 1849") == 1849
    assert extract_year("N/A") == 0
    assert extract_year(None) == 0
