"""Core domain models for stamp records and analysis results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Literal

ExpertStatus = Literal["none", "pending", "appraised"]

STATUS_NONE: ExpertStatus = "none"
STATUS_PENDING: ExpertStatus = "pending"
STATUS_APPRAISED: ExpertStatus = "appraised"
EXPERT_STATUSES: tuple[str, ...] = (STATUS_NONE, STATUS_PENDING, STATUS_APPRAISED)

# Python attribute -> stored JSON key
_JSON_KEYS: dict[str, str] = {
    "estimated_value": "estimatedValue",
    "date_added": "dateAdded",
    "expert_status": "expertStatus",
    "expert_valuation": "expertValuation",
    "expert_note": "expertNote",
    "historical_context": "historicalContext",
    "printing_method": "printingMethod",
    "paper_type": "paperType",
    "cancellation_type": "cancellationType",
}

DEEP_ANALYSIS_FIELDS: tuple[str, ...] = ("printing_method", "paper_type", "cancellation_type")


@dataclass(frozen=True)
class StampRecord:
    """A single catalogued stamp.

    Records are value snapshots: mutations produce a new instance via
    `dataclasses.replace` and are handed to the collection store wholesale.
    Optional fields are `None` until the corresponding analysis or appraisal
    produced them.
    """

    image: str
    name: str
    origin: str
    year: str
    estimated_value: str
    rarity: str
    condition: str
    description: str
    album: str
    id: str = ""
    date_added: str = ""
    expert_status: ExpertStatus = STATUS_NONE
    expert_valuation: str | None = None
    expert_note: str | None = None
    historical_context: str | None = None
    printing_method: str | None = None
    paper_type: str | None = None
    cancellation_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the storage representation, omitting absent optional fields."""
        out: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            out[_JSON_KEYS.get(key, key)] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StampRecord:
        """Build a record from its storage representation.

        Raises:
            ValueError: If `data` is not a mapping or lacks `id`.
        """
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")
        if not data.get("id"):
            raise ValueError("record without id")
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            raw = data.get(_JSON_KEYS.get(f.name, f.name))
            if raw is None:
                if f.name in _REQUIRED_TEXT:
                    kwargs[f.name] = ""
                continue
            kwargs[f.name] = str(raw)
        if kwargs.get("expert_status") not in EXPERT_STATUSES:
            kwargs["expert_status"] = STATUS_NONE
        return cls(**kwargs)


_REQUIRED_TEXT = frozenset(
    {
        "image",
        "name",
        "origin",
        "year",
        "estimated_value",
        "rarity",
        "condition",
        "description",
        "album",
    }
)


@dataclass(frozen=True)
class AnalysisResult:
    """Normalized answer of the AI analysis service.

    Required fields are always strings. Optional fields are `None` when the
    service did not deliver them, so callers can tell "not analyzed" apart
    from "analyzed as blank".
    """

    name: str
    origin: str
    year: str
    estimated_value: str
    rarity: str
    condition: str
    description: str
    historical_context: str | None = None
    printing_method: str | None = None
    paper_type: str | None = None
    cancellation_type: str | None = None


@dataclass(frozen=True)
class ConditionField:
    """A labeled sub-field found inside a free-text condition description."""

    label: str
    value: str
