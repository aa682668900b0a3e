"""Exception hierarchy shared by the core services and infrastructure.

Usage:
    from core.errors import AnalysisError, RecordNotFound

    try:
        result = await analyzer.analyze(image)
    except AnalysisError as e:
        logger.error("Analysis failed [{}]: {}", e.category, e)
"""

from __future__ import annotations

from typing import Any

CATEGORY_SAFETY = "safety"
CATEGORY_NETWORK = "network"
CATEGORY_QUALITY = "quality"


class PhilatelyError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        code: str = "PHILATELY_ERROR",
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a plain dict for display or export."""
        result: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# ============================================================
# Analysis errors
# ============================================================

_QUALITY_HINTS: tuple[str, ...] = (
    "Sorgen Sie für gleichmäßige Beleuchtung ohne Reflexionen.",
    "Optimieren Sie den Fokus: Die Zähnung und Details sollten scharf abgebildet sein.",
    "Fotografieren Sie die Marke vor einem kontrastreichen, neutralen Hintergrund.",
)


class AnalysisError(PhilatelyError):
    """Base class for failures of the AI analysis request.

    `category` is a best-effort classification for caller-facing messaging.
    """

    category: str = CATEGORY_QUALITY
    default_message = "Analyse fehlgeschlagen. Bitte Bildqualität prüfen."

    def __init__(
        self,
        message: str | None = None,
        code: str = "ANALYSIS_ERROR",
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message or self.default_message, code, details, cause)

    @property
    def hints(self) -> tuple[str, ...]:
        """Remediation hints shown next to the error message."""
        return _QUALITY_HINTS

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["category"] = self.category
        return result


class EmptyResponse(AnalysisError):
    """The service answered without any text payload."""

    default_message = "Die KI hat keine lesbaren Daten zurückgegeben."

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, code="EMPTY_RESPONSE", **kwargs)


class MalformedResponse(AnalysisError):
    """The returned text did not contain a parseable JSON object."""

    default_message = "Das KI-Ergebnis konnte nicht verarbeitet werden."

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, code="MALFORMED_RESPONSE", **kwargs)


class SafetyBlocked(AnalysisError):
    """The request was blocked by the service's safety policy."""

    category = CATEGORY_SAFETY
    default_message = (
        "Die Analyse wurde aufgrund von Sicherheitsrichtlinien blockiert. "
        "Bitte stellen Sie sicher, dass das Bild nur eine Briefmarke zeigt."
    )

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, code="SAFETY_BLOCKED", **kwargs)

    @property
    def hints(self) -> tuple[str, ...]:
        return ("Zeigen Sie ausschließlich die Briefmarke, ohne Personen oder Dokumente.",)


class NetworkError(AnalysisError):
    """The service could not be reached."""

    category = CATEGORY_NETWORK
    default_message = "Netzwerkfehler: Der Analysedienst konnte nicht erreicht werden."

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, code="NETWORK_ERROR", **kwargs)

    @property
    def hints(self) -> tuple[str, ...]:
        return ("Prüfen Sie die Internetverbindung und versuchen Sie es erneut.",)


class QualityOrUnknown(AnalysisError):
    """Unclassified failure, including unrecognizable or low-quality images."""

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, code="QUALITY_OR_UNKNOWN", **kwargs)


# ============================================================
# Collection and workflow errors
# ============================================================


class StorageError(PhilatelyError):
    """Writing the collection to durable storage failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, code="STORAGE_ERROR", cause=cause)


class RecordNotFound(PhilatelyError):
    """No record with the requested id exists in the collection."""

    def __init__(self, record_id: str) -> None:
        super().__init__(
            f"Marke nicht gefunden: {record_id}",
            code="RECORD_NOT_FOUND",
            details={"id": record_id},
        )
        self.record_id = record_id


class InvalidStatusTransition(PhilatelyError):
    """The expert workflow does not allow the requested status change."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Statuswechsel von '{current}' nach '{target}' ist nicht erlaubt.",
            code="INVALID_STATUS_TRANSITION",
            details={"current": current, "target": target},
        )
        self.current = current
        self.target = target


class ImageLoadError(PhilatelyError):
    """A photograph could not be read or is not an image."""

    def __init__(self, path: str, cause: Exception | None = None) -> None:
        super().__init__(
            f"Bild konnte nicht geladen werden: {path}",
            code="IMAGE_LOAD_ERROR",
            details={"path": path},
            cause=cause,
        )
