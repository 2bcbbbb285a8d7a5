"""Thumbnail generation using pyvips.

Decodes a source image, shrinks it so the longer side fits ``max_dimension``
(never upscaling) and re-encodes it as PNG regardless of the source format.
Stateless; safe to call from several worker threads at once.
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.logger import get_logger

from .metrics import metrics

_logger = get_logger("decoder")

THUMBNAIL_MIME = "image/png"
_THUMBNAIL_SUFFIX = ".png"

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Source files change on disk between scans; keep libvips from
        # serving stale decodes out of its operation cache.
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
            pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def _load_thumbnail(path: str, max_dimension: int) -> Any:
    pyvips = _get_pyvips_module()
    try:
        image = pyvips.Image.thumbnail(path, max_dimension, height=max_dimension, size="down")
        # thumbnail() is lazy; force the decode here so corrupt input is
        # reported as a decode failure rather than at encode time.
        image = image.copy_memory()
    except pyvips.Error as exc:
        raise GalleryError(ErrorKind.DECODE_FAILED, path, str(exc).strip()) from exc

    with contextlib.suppress(pyvips.Error):
        image = image.colourspace("srgb")
    if image.format != "uchar":
        image = image.cast("uchar")
    return image


def generate_thumbnail(path: str | Path, max_dimension: int) -> tuple[bytes, str]:
    """Return ``(png_bytes, mime)`` for a bounded rendition of ``path``.

    Raises GalleryError (DECODE_FAILED / ENCODE_FAILED) on failure.
    """
    path_str = str(path)
    if max_dimension <= 0:
        raise ValueError(f"max_dimension must be positive, got {max_dimension}")

    try:
        image = _load_thumbnail(path_str, int(max_dimension))
        pyvips = _get_pyvips_module()
        try:
            out = image.write_to_buffer(_THUMBNAIL_SUFFIX)
        except pyvips.Error as exc:
            raise GalleryError(ErrorKind.ENCODE_FAILED, path_str, str(exc).strip()) from exc
        if not out:
            raise GalleryError(ErrorKind.ENCODE_FAILED, path_str, "encoder produced no data")
    except GalleryError:
        metrics.inc("thumbnail.failed")
        raise

    metrics.inc("thumbnail.generated")
    _logger.debug("thumbnail: %s -> %dx%d (%d bytes)", path_str, image.width, image.height, len(out))
    return bytes(out), THUMBNAIL_MIME
