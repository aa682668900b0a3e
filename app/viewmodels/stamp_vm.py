"""Lightweight view model wrapper around `StampRecord`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import STATUS_APPRAISED, ConditionField, StampRecord
from core.services.condition_parser import extract_condition_fields
from core.services.value_parser import effective_value, parse_value

_BULLETS = ("-", "•")


@dataclass
class StampVM:
    """Expose convenient derived properties for bindings/templates."""

    record: StampRecord

    @property
    def display_value(self) -> str:
        """Expert valuation when available, else the AI estimate."""
        return effective_value(self.record)

    @property
    def numeric_value(self) -> float:
        """`display_value` parsed to a number (0 when unparseable)."""
        return parse_value(self.display_value)

    @property
    def is_expert_confirmed(self) -> bool:
        return self.record.expert_status == STATUS_APPRAISED

    @property
    def has_deep_analysis(self) -> bool:
        """True once any technical deep-analysis field is present."""
        r = self.record
        return any(v is not None for v in (r.printing_method, r.paper_type, r.cancellation_type))

    @property
    def condition_fields(self) -> list[ConditionField] | None:
        """Labeled condition sub-fields, or None to show the raw text."""
        return extract_condition_fields(self.record.condition)

    @staticmethod
    def paragraphs(text: str | None) -> list[str]:
        """Split free text into non-empty paragraphs; bullet markers are stripped."""
        if not text:
            return []
        out: list[str] = []
        for line in text.split("\n"):
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith(_BULLETS):
                stripped = "• " + stripped[1:].strip()
            out.append(stripped)
        return out
