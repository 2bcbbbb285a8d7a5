from __future__ import annotations

import base64
from pathlib import Path

from gallery_viewer.errors import ErrorKind, GalleryError

from .classifier import content_type_for


def to_data_url(blob: bytes, mime: str) -> str:
    encoded = base64.b64encode(blob).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def load_full_image(path: str | Path) -> str:
    """Read ``path`` as-is and return it as a base64 data URL."""
    image_path = Path(path)
    if not image_path.is_file():
        raise GalleryError(ErrorKind.NOT_FOUND, image_path)
    mime = content_type_for(image_path)
    if mime is None:
        raise GalleryError(ErrorKind.UNSUPPORTED_FORMAT, image_path)
    try:
        data = image_path.read_bytes()
    except OSError as exc:
        raise GalleryError(ErrorKind.IO_FAILURE, image_path, f"Failed to read image: {exc}") from exc
    return to_data_url(data, mime)
