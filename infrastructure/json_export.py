"""Backup export of the full collection as one JSON document."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
import json
from pathlib import Path

from loguru import logger

from core.models import StampRecord

BACKUP_PREFIX = "PhilatelyAI_Backup_"


def backup_file_name(day: date | None = None) -> str:
    """Return the dated backup name, e.g. `PhilatelyAI_Backup_2024-05-01.json`."""
    return f"{BACKUP_PREFIX}{(day or date.today()).isoformat()}.json"


def export_collection(
    records: Iterable[StampRecord], out_dir: str | Path, day: date | None = None
) -> Path:
    """Write all `records` to a dated backup file inside `out_dir`.

    Returns:
        Path of the written file.
    """
    path = Path(out_dir) / backup_file_name(day)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in records]
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    logger.info("Backup written: {} ({} records)", path, len(payload))
    return path
