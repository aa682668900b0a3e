"""Stamp analysis via the Gemini generative AI service.

The module builds the analysis prompt, sends one image plus prompt with a
declared JSON response schema, and turns the answer into a normalized
`AnalysisResult`. Failures surface as `AnalysisError` subclasses carrying a
best-effort category (safety, network, quality).

Prompt building, JSON extraction, normalization and error classification are
plain functions so they can be used and tested without the SDK client.
"""

from __future__ import annotations

import json
from typing import Any

from google import genai
from google.genai import errors, types
import httpx
from loguru import logger

from core.errors import (
    AnalysisError,
    EmptyResponse,
    MalformedResponse,
    NetworkError,
    QualityOrUnknown,
    SafetyBlocked,
)
from core.models import STATUS_APPRAISED, AnalysisResult, StampRecord
from core.services.interfaces import IStampAnalyzer
from infrastructure.image_service import split_data_uri
from infrastructure.settings import DEFAULT_MODEL

REQUIRED_FIELDS: dict[str, str] = {
    "name": "Unbekannte Marke",
    "origin": "Unbekannt",
    "year": "N/A",
    "estimatedValue": "0.00 €",
    "rarity": "Nicht klassifiziert",
    "condition": "Zustand unklar",
    "description": "",
}
OPTIONAL_FIELDS: tuple[str, ...] = (
    "historicalContext",
    "printingMethod",
    "paperType",
    "cancellationType",
)

# response key -> AnalysisResult attribute
_ATTRS: dict[str, str] = {
    "name": "name",
    "origin": "origin",
    "year": "year",
    "estimatedValue": "estimated_value",
    "rarity": "rarity",
    "condition": "condition",
    "description": "description",
    "historicalContext": "historical_context",
    "printingMethod": "printing_method",
    "paperType": "paper_type",
    "cancellationType": "cancellation_type",
}

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        key: types.Schema(type=types.Type.STRING) for key in (*REQUIRED_FIELDS, *OPTIONAL_FIELDS)
    },
    required=list(REQUIRED_FIELDS),
)

_SAFETY_MARKERS = ("SAFETY", "Sicherheitsrichtlinien")
_NETWORK_MARKERS = (
    "Netzwerk",
    "verbinden",
    "network",
    "connection",
    "Failed to fetch",
    "ECONNREFUSED",
    "ENOTFOUND",
)
_NETWORK_STATUS_CODES = frozenset({502, 503, 504})


# ============================================================
# Prompt
# ============================================================


def build_prompt(
    prior_record: StampRecord | None = None,
    keywords: str | None = None,
    quality_hint: str | None = None,
    deep_analysis: bool = False,
) -> str:
    """Build the analysis prompt. Pure function of its inputs."""
    context_parts: list[str] = []

    if prior_record is not None and prior_record.expert_status == STATUS_APPRAISED:
        context_parts.append(
            "WICHTIGER KONTEXT: Diese Briefmarke wurde bereits von einem Experten begutachtet.\n"
            f"Experten-Wert: {prior_record.expert_valuation or ''}\n"
            f"Experten-Note: {prior_record.expert_note or ''}\n"
            "DEINE AUFGABE: Nutze diese Informationen als primäre Basis."
        )

    if keywords and keywords.strip():
        context_parts.append(f'NUTZER-HINWEIS: "{keywords}".')

    if quality_hint and quality_hint.strip():
        context_parts.append(f"QUALITÄTSHINWEIS: {quality_hint}.")

    lines = [
        "Analysiere diese Briefmarke professionell. "
        "Nutze weltweite Datenbanken (Michel, Scott, etc.).",
    ]
    if context_parts:
        lines.append("\n\n".join(context_parts))
    lines.extend(
        [
            "IDENTIFIZIERUNG: Land, Jahr, Name, Katalognummer (falls möglich).",
            "ZUSTAND: Nutze Fachbegriffe (Luxus, Kabinett, MNH, MH, gestempelt). "
            "Prüfe Zähnung, Zentrierung und Stempelqualität.",
            "WERT: Realistischer Marktpreis in Euro.",
            "HISTORIE: Kontext und philatelistische Bedeutung.",
        ]
    )
    prompt = "\n".join(lines)

    if deep_analysis:
        prompt += (
            "\n\nFÜHRE EINE TIEFEN-ANALYSE DURCH:\n"
            "1. printingMethod: Druckverfahren (z.B. Stichtiefdruck, Offset).\n"
            "2. paperType: Papiermerkmale (Wasserzeichen, Seidenfäden, Kreide).\n"
            "3. cancellationType: Stempelform (Einkreis, Brückenstempel, etc.)."
        )

    prompt += (
        "\n\nAntworte strikt im JSON-Format gemäß dem Schema. "
        "Pflichtfelder: " + ", ".join(REQUIRED_FIELDS) + ". "
        "Optionale Felder: " + ", ".join(OPTIONAL_FIELDS) + ". "
        "Falls ein technisches Detail nicht eindeutig identifizierbar ist, "
        "lasse das Feld weg oder setze es auf einen leeren String."
    )
    return prompt


# ============================================================
# Response handling
# ============================================================


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in `text`, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def normalize_response(data: dict[str, Any]) -> AnalysisResult:
    """Coerce a parsed response document into an `AnalysisResult`.

    Missing, null or empty required fields get fixed defaults. Optional fields
    are kept only when present and non-blank.
    """
    values: dict[str, str | None] = {}
    for key, default in REQUIRED_FIELDS.items():
        raw = data.get(key)
        values[_ATTRS[key]] = _as_text(raw) if raw else default
    for key in OPTIONAL_FIELDS:
        raw = data.get(key)
        text = _as_text(raw).strip() if raw else ""
        values[_ATTRS[key]] = text or None
    return AnalysisResult(**values)  # type: ignore[arg-type]


def parse_response(text: str | None) -> AnalysisResult:
    """Parse the raw service text into a normalized result.

    Raises:
        EmptyResponse: If `text` is empty.
        MalformedResponse: If no JSON object can be extracted and parsed.
    """
    if not text or not text.strip():
        raise EmptyResponse()
    span = extract_json_object(text)
    if span is None:
        logger.error("No JSON object in response: {}", text[:500])
        raise MalformedResponse(details={"raw": text[:500]})
    try:
        data = json.loads(span)
    except json.JSONDecodeError as ex:
        logger.error("JSON parse error: {} | raw={}", ex, text[:500])
        raise MalformedResponse(details={"raw": text[:500]}, cause=ex) from ex
    if not isinstance(data, dict):
        raise MalformedResponse(details={"raw": text[:500]})
    return normalize_response(data)


# ============================================================
# Error classification
# ============================================================


def _classify_by_text(exc: BaseException) -> AnalysisError:
    """Fallback classification by markers in the error text."""
    text = str(exc)
    cause = exc if isinstance(exc, Exception) else None
    if any(marker in text for marker in _SAFETY_MARKERS):
        return SafetyBlocked(cause=cause)
    lowered = text.lower()
    if any(marker.lower() in lowered for marker in _NETWORK_MARKERS):
        return NetworkError(text, cause=cause)
    return QualityOrUnknown(text or None, cause=cause)


def classify_error(exc: BaseException) -> AnalysisError:
    """Map any failure of the analysis call to an `AnalysisError`.

    Typed signals (SDK API errors, transport errors) are used first; the
    error text is only inspected when they are inconclusive.
    """
    if isinstance(exc, AnalysisError):
        return exc
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return NetworkError(cause=exc)
    if isinstance(exc, errors.APIError):
        if exc.code in _NETWORK_STATUS_CODES or exc.status in {"UNAVAILABLE", "DEADLINE_EXCEEDED"}:
            return NetworkError(cause=exc)
    return _classify_by_text(exc)


def _check_blocked(response: Any) -> None:
    """Raise `SafetyBlocked` when the response reports a safety block."""
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        raise SafetyBlocked(details={"block_reason": str(block_reason)})
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        reason = getattr(candidates[0], "finish_reason", None)
        if reason is not None and "SAFETY" in str(getattr(reason, "name", reason)):
            raise SafetyBlocked(details={"finish_reason": str(reason)})


# ============================================================
# Client
# ============================================================


class GeminiStampAnalyzer(IStampAnalyzer):
    """Analyze stamp photographs with one Gemini request per call.

    No retries and no timeout are applied; a retry is the caller invoking
    `analyze` again.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float | None = None,
        client: Any | None = None,
    ) -> None:
        """Create the analyzer.

        Args:
            api_key: Gemini API key; ignored when `client` is given.
            model: Model name.
            temperature: Optional sampling temperature.
            client: Pre-built `genai.Client` (or compatible object).
        """
        self._client = client if client is not None else genai.Client(api_key=api_key)
        self._model = model
        self._temperature = temperature

    def _config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
            temperature=self._temperature,
        )

    async def analyze(
        self,
        image: str,
        prior_record: StampRecord | None = None,
        *,
        keywords: str | None = None,
        quality_hint: str | None = None,
        deep_analysis: bool = False,
    ) -> AnalysisResult:
        """Identify and appraise the stamp in `image`.

        Args:
            image: Data URI (or bare base64) of the photograph.
            prior_record: Existing record being re-analyzed, if any.
            keywords: Free-text user hint.
            quality_hint: Hint about what to focus on.
            deep_analysis: Also ask for printing method, paper and cancellation.

        Raises:
            AnalysisError: Any failure, classified.
        """
        prompt = build_prompt(prior_record, keywords, quality_hint, deep_analysis)
        try:
            mime_type, data = split_data_uri(image)
        except ValueError as ex:
            raise QualityOrUnknown(str(ex), cause=ex) from ex

        contents = [
            types.Part.from_bytes(data=data, mime_type=mime_type),
            types.Part.from_text(text=prompt),
        ]
        logger.info(
            "Analysis request: model={} deep={} keywords={} prior={}",
            self._model,
            deep_analysis,
            bool(keywords),
            prior_record.id if prior_record else None,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=contents,
                config=self._config(),
            )
            _check_blocked(response)
            result = parse_response(response.text)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            classified = classify_error(ex)
            logger.error("Analysis failed [{}]: {}", classified.category, ex)
            if classified is ex:
                raise
            raise classified from ex

        logger.info("Analysis ok: {} ({}, {})", result.name, result.origin, result.year)
        return result
