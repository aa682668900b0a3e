"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_KEY_ENV = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
DEFAULT_HOME = Path.home() / ".philately_ai"


class JsonSettings:
    """JSON settings reader with dotted-key access and typed app accessors."""

    def __init__(self, settings_path: str | Path | None = None) -> None:
        """Load settings from `settings_path`; None uses built-in defaults only.

        Raises:
            FileNotFoundError: If an explicit `settings_path` does not exist.
        """
        self._data: dict[str, Any] = {}
        self._path = Path(settings_path) if settings_path is not None else None
        if self._path is None:
            return
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    # ------------------------------------------------------------------
    # AI service
    # ------------------------------------------------------------------
    @property
    def ai_model(self) -> str:
        """Gemini model name used for analyses."""
        return str(self.get("ai.model", DEFAULT_MODEL))

    @property
    def ai_temperature(self) -> float | None:
        value = self.get("ai.temperature")
        return float(value) if value is not None else None

    def api_key(self) -> str | None:
        """First non-empty API key among the configured environment variables."""
        names = self.get("ai.api_key_env", list(DEFAULT_API_KEY_ENV))
        for name in names:
            value = os.environ.get(str(name))
            if value:
                return value
        return None

    # ------------------------------------------------------------------
    # Storage, albums, sorting
    # ------------------------------------------------------------------
    @property
    def storage_dir(self) -> Path:
        return Path(self.get("storage.dir", str(DEFAULT_HOME / "storage"))).expanduser()

    @property
    def collection_key(self) -> str:
        return str(self.get("storage.collection_key", "stamp_collection"))

    @property
    def albums_key(self) -> str:
        return str(self.get("storage.albums_key", "stamp_albums"))

    @property
    def default_albums(self) -> list[str] | None:
        raw = self.get("albums.defaults")
        if isinstance(raw, list) and raw:
            return [str(a) for a in raw]
        return None

    @property
    def default_sort(self) -> tuple[str, bool]:
        """(field, ascending) applied to the collection view on start."""
        # Expect a dict like: {"field": "dateAdded", "asc": false}
        raw = self.get("sorting.default", {})
        if isinstance(raw, dict) and "field" in raw:
            return str(raw.get("field")), bool(raw.get("asc", False))
        return "dateAdded", False

    @property
    def export_dir(self) -> Path:
        return Path(self.get("export.dir", ".")).expanduser()

    @property
    def log_dir(self) -> Path:
        return Path(self.get("logging.dir", str(DEFAULT_HOME / "logs"))).expanduser()
