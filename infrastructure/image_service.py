"""Photograph loading and data URI helpers.

Photos are embedded into records as data URIs. Pillow (with the pillow-heif
opener for phone HEIC photos) only identifies the file; pixel data is passed
through unchanged.
"""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path

from loguru import logger
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from core.errors import ImageLoadError

register_heif_opener()

DEFAULT_MIME_TYPE = "image/jpeg"


def _mime_for_format(fmt: str | None) -> str:
    """Map a Pillow format name to a MIME type, defaulting to JPEG."""
    if not fmt:
        return DEFAULT_MIME_TYPE
    mime = Image.MIME.get(fmt.upper())
    if mime:
        return mime
    if fmt.upper() in {"HEIF", "HEIC"}:
        return "image/heic"
    return DEFAULT_MIME_TYPE


def detect_mime_type(data: bytes) -> str:
    """Return the MIME type of encoded image `data`.

    Raises:
        ValueError: If Pillow does not recognize the data as an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.verify()
            return _mime_for_format(im.format)
    except (UnidentifiedImageError, OSError, SyntaxError) as ex:
        raise ValueError(f"not an image: {ex}") from ex


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode `data` as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def load_image_data_uri(path: str | Path) -> str:
    """Read the photograph at `path` and return it as a data URI.

    Raises:
        ImageLoadError: If the file cannot be read or is not an image.
    """
    p = Path(path)
    try:
        data = p.read_bytes()
        mime = detect_mime_type(data)
    except (OSError, ValueError) as ex:
        logger.error("Image load failed for {}: {}", p, ex)
        raise ImageLoadError(str(p), cause=ex) from ex
    logger.info("Image loaded: {} ({}, {} bytes)", p, mime, len(data))
    return to_data_uri(data, mime)


def split_data_uri(image: str) -> tuple[str, bytes]:
    """Return (mime_type, raw bytes) of a data URI or bare base64 string.

    Bare base64 payloads are assumed to be JPEG.

    Raises:
        ValueError: If the payload is not valid base64.
    """
    mime = DEFAULT_MIME_TYPE
    payload = image
    if image.startswith("data:") and "," in image:
        header, payload = image.split(",", 1)
        declared = header[len("data:") :].split(";", 1)[0]
        if declared:
            mime = declared
    try:
        return mime, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as ex:
        raise ValueError(f"invalid base64 image payload: {ex}") from ex
