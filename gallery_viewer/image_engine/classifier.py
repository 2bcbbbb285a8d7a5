"""Supported image formats and their content types."""

from __future__ import annotations

import os
from pathlib import Path

# Single table so the allow-list and the MIME mapping cannot drift apart.
_MIME_BY_EXT: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}

IMAGE_EXTS: tuple[str, ...] = tuple(_MIME_BY_EXT)


def _suffix(path: str | Path) -> str:
    return os.path.splitext(os.fspath(path))[1].lower()


def is_supported(path: str | Path) -> bool:
    return _suffix(path) in _MIME_BY_EXT


def content_type_for(path: str | Path) -> str | None:
    return _MIME_BY_EXT.get(_suffix(path))
