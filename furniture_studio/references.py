from __future__ import annotations

"""
Helpers that turn uploads into ImagePayload and reference records.

Uploads arrive as files on disk, data URLs from a browser file reader, or raw
bytes. Each one is opened with Pillow once so unreadable files fail at upload
time rather than in the middle of a remote call, and so the MIME type comes
from the image itself instead of a file extension.
"""

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .errors import InvalidReference
from .ids import IdGenerator, UuidIdGenerator
from .models import EnvironmentReference, ImagePayload, ProductReference

DEFAULT_PRODUCT_DESCRIPTION = "Product view"

_DATA_URL_PREFIX = "data:"


def _sniff_mime_type(data: bytes) -> str:
    """Identify the image format with Pillow and map it to a MIME type."""
    try:
        with Image.open(BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidReference(f"Not a readable image: {exc}") from exc

    mime_type = Image.MIME.get(fmt or "")
    if not mime_type:
        raise InvalidReference(f"Unsupported image format: {fmt}")
    return mime_type


def image_from_bytes(data: bytes, mime_type: Optional[str] = None) -> ImagePayload:
    """Wrap raw bytes, detecting the MIME type when none is given."""
    if not data:
        raise InvalidReference("Image data is empty.")
    detected = _sniff_mime_type(data)
    if mime_type and mime_type != detected:
        logging.warning(
            "Declared MIME type %s does not match image content %s; using %s.",
            mime_type,
            detected,
            detected,
        )
    return ImagePayload(data=data, mime_type=detected)


def image_from_data_url(url: str) -> ImagePayload:
    """Decode a ``data:<mime>;base64,<payload>`` URL."""
    if not url.startswith(_DATA_URL_PREFIX) or "," not in url:
        raise InvalidReference("Expected a base64 data URL.")

    header, encoded = url.split(",", 1)
    meta = header[len(_DATA_URL_PREFIX):].split(";")
    if "base64" not in meta[1:]:
        raise InvalidReference("Only base64 encoded data URLs are supported.")

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidReference(f"Invalid base64 payload: {exc}") from exc

    return image_from_bytes(data, mime_type=meta[0] or None)


def image_from_path(path: Union[str, Path]) -> ImagePayload:
    """Read an image file from disk."""
    path = Path(path)
    if not path.exists():
        raise InvalidReference(f"Reference image not found: {path}")

    payload = image_from_bytes(path.read_bytes())
    logging.info("Loaded reference image from %s (%s)", path, payload.mime_type)
    return payload


def load_image(source: Union[str, Path, bytes, ImagePayload]) -> ImagePayload:
    """Accept any supported upload form and return an ImagePayload."""
    if isinstance(source, ImagePayload):
        return source
    if isinstance(source, bytes):
        return image_from_bytes(source)
    if isinstance(source, str) and source.startswith(_DATA_URL_PREFIX):
        return image_from_data_url(source)
    return image_from_path(source)


def product_reference(
        source: Union[str, Path, bytes, ImagePayload],
        description: str = DEFAULT_PRODUCT_DESCRIPTION,
        id_generator: Optional[IdGenerator] = None,
) -> ProductReference:
    ids = id_generator or UuidIdGenerator()
    return ProductReference(
        id=ids.new_id(),
        image=load_image(source),
        description=description,
    )


def environment_reference(
        source: Union[str, Path, bytes, ImagePayload],
        description: str = "",
) -> EnvironmentReference:
    return EnvironmentReference(image=load_image(source), description=description)
