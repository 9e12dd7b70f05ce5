"""Image loading and verification for photo-based requests."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import InvalidImage
from .schemas import ImageInput

_SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"}
_FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "GIF": "image/gif",
}


def load_image(path: Path, max_bytes: int) -> ImageInput:
    """Read and verify an image file, returning an ``ImageInput`` with its identity metadata."""

    path = Path(path)
    if path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise InvalidImage(f"Unsupported image type '{path.suffix or path.name}'.")
    try:
        stat = path.stat()
        data = path.read_bytes()
    except OSError as exc:
        raise InvalidImage(f"Unable to read image at {path}: {exc}") from exc

    return _build_input(data, name=path.name, last_modified=stat.st_mtime, max_bytes=max_bytes)


def image_from_base64(
    data_base64: str,
    *,
    name: str,
    max_bytes: int,
    last_modified: float = 0.0,
) -> ImageInput:
    """Decode a base64 (or ``data:`` URL) payload into a verified ``ImageInput``."""

    encoded = data_base64.split(",", 1)[1] if data_base64.startswith("data:") else data_base64
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImage(f"Image '{name}' is not valid base64: {exc}") from exc
    return _build_input(data, name=name, last_modified=last_modified, max_bytes=max_bytes)


def _build_input(data: bytes, *, name: str, last_modified: float, max_bytes: int) -> ImageInput:
    if not data:
        raise InvalidImage(f"Image '{name}' is empty.")
    if len(data) > max_bytes:
        raise InvalidImage(f"Image '{name}' is {len(data)} bytes; the limit is {max_bytes}.")

    image_format, width, height = _verify_image(data, name)
    return ImageInput(
        name=name,
        mime_type=_FORMAT_MIME_TYPES.get(image_format, "application/octet-stream"),
        data=data,
        size=len(data),
        last_modified=last_modified,
        width=width,
        height=height,
    )


def _verify_image(data: bytes, name: str) -> tuple[str, int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format or ""
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImage(f"Unable to decode image '{name}': {exc}") from exc
    return image_format, width, height
