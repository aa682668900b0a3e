"""Parsing helpers for locale-formatted values shown on stamp records.

All helpers are best-effort and never raise: malformed input degrades to `0`.
"""

from __future__ import annotations

import re

from core.models import StampRecord

_NON_NUMERIC = re.compile(r"[^\d.,-]")
# Longest leading decimal number, e.g. "12.5" out of "12.5-15"
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)")
_YEAR = re.compile(r"\d{4}")


def parse_value(text: str | None) -> float:
    """Convert a currency string such as ``"1.250,00 €"`` into a float.

    When both ``.`` and ``,`` occur, whichever comes last is the decimal
    separator and the other one is dropped as a thousands separator. A lone
    comma is read as the decimal separator (German convention). Returns
    ``0.0`` for empty or unparseable input.
    """
    if not text:
        return 0.0
    clean = _NON_NUMERIC.sub("", str(text)).strip()
    if not clean:
        return 0.0

    if "." in clean and "," in clean:
        if clean.rfind(".") > clean.rfind(","):
            clean = clean.replace(",", "")
        else:
            clean = clean.replace(".", "").replace(",", ".", 1)
    elif "," in clean:
        clean = clean.replace(",", ".", 1)

    match = _LEADING_NUMBER.match(clean)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def effective_value(record: StampRecord) -> str:
    """Return the expert valuation when present and non-blank, else the AI estimate."""
    if record.expert_valuation and record.expert_valuation.strip():
        return record.expert_valuation
    return record.estimated_value


def format_eur(amount: float) -> str:
    """Format `amount` with German grouping, e.g. ``€1.234,50``."""
    grouped = f"{amount:,.2f}"
    # 1,234.50 -> 1.234,50
    return "€" + grouped.replace(",", "_").replace(".", ",").replace("_", ".")


def extract_year(text: str | None) -> int:
    """Return the first four-digit run in `text` as int, or 0."""
    if not text:
        return 0
    match = _YEAR.search(text)
    return int(match.group(0)) if match else 0
