from __future__ import annotations

import base64
from datetime import date
import json

from PIL import Image
import pytest

from core.errors import ImageLoadError
from infrastructure.image_service import load_image_data_uri, split_data_uri, to_data_uri
from infrastructure.json_export import backup_file_name, export_collection
from infrastructure.logging import find_latest_log_file
from infrastructure.settings import JsonSettings
from tests.conftest import make_record

# ------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------


def _write_settings(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return JsonSettings(path)


def test_settings_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "nope.json")


def test_settings_dotted_access_and_defaults(tmp_path):
    settings = _write_settings(
        tmp_path,
        {
            "ai": {"model": "gemini-x"},
            "storage": {"dir": str(tmp_path / "store")},
            "sorting": {"default": {"field": "estimatedValue", "asc": True}},
        },
    )
    assert settings.get("ai.model") == "gemini-x"
    assert settings.get("ai.missing", 3) == 3
    assert settings.ai_model == "gemini-x"
    assert settings.storage_dir == tmp_path / "store"
    assert settings.default_sort == ("estimatedValue", True)
    assert settings.collection_key == "stamp_collection"
    assert settings.default_albums is None


def test_settings_api_key_from_environment(tmp_path, monkeypatch):
    settings = _write_settings(tmp_path, {"ai": {"api_key_env": ["MY_KEY", "OTHER_KEY"]}})
    monkeypatch.delenv("MY_KEY", raising=False)
    monkeypatch.setenv("OTHER_KEY", "secret")
    assert settings.api_key() == "secret"


# ------------------------------------------------------------------
# Images
# ------------------------------------------------------------------


def test_load_image_detects_mime_type(tmp_path):
    path = tmp_path / "marke.png"
    Image.new("RGB", (4, 4), "red").save(path)

    uri = load_image_data_uri(path)

    assert uri.startswith("data:image/png;base64,")
    mime, data = split_data_uri(uri)
    assert mime == "image/png"
    assert data == path.read_bytes()


def test_load_non_image_raises(tmp_path):
    path = tmp_path / "notiz.txt"
    path.write_text("keine Marke", encoding="utf-8")
    with pytest.raises(ImageLoadError):
        load_image_data_uri(path)


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ImageLoadError):
        load_image_data_uri(tmp_path / "fehlt.jpg")


def test_split_bare_base64_defaults_to_jpeg():
    payload = base64.b64encode(b"abc").decode("ascii")
    assert split_data_uri(payload) == ("image/jpeg", b"abc")
    assert split_data_uri(to_data_uri(b"abc", "image/webp")) == ("image/webp", b"abc")


def test_split_invalid_base64_raises():
    with pytest.raises(ValueError):
        split_data_uri("data:image/jpeg;base64,***")


# ------------------------------------------------------------------
# Export and logs
# ------------------------------------------------------------------


def test_backup_file_name():
    assert backup_file_name(date(2024, 5, 1)) == "PhilatelyAI_Backup_2024-05-01.json"


def test_export_collection_is_indented_and_complete(tmp_path):
    path = export_collection([make_record(), make_record(id="rec2")], tmp_path, date(2024, 5, 1))
    text = path.read_text(encoding="utf-8")
    assert '\n  {\n    "image"' in text
    assert [r["id"] for r in json.loads(text)] == ["rec1", "rec2"]


def test_find_latest_log_file(tmp_path):
    assert find_latest_log_file(tmp_path) is None
    (tmp_path / "app_20240101.log").write_text("x", encoding="utf-8")
    assert find_latest_log_file(tmp_path).name == "app_20240101.log"
