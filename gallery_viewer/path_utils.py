"""Path normalization utilities.

This module centralizes the project's path rules:

- Use absolute paths when interacting with the filesystem.
- Derive the thumbnail cache key from the full path string (not content).
- Resolve and create the application data directory holding the cache DB.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from gallery_viewer.errors import ErrorKind, GalleryError

_APP_DIR_NAME = "gallery_viewer"


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        # strict=False avoids exceptions for non-existent paths.
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    return str(abs_path(path))


def cache_key(path: str | Path) -> str:
    """Stable cache key for a filesystem path.

    SHA-256 over the path string exactly as given; identical strings map to
    identical keys across runs.
    """
    raw = os.fspath(path).encode("utf-8", errors="surrogateescape")
    return hashlib.sha256(raw).hexdigest()


def default_data_dir() -> Path:
    override = (os.getenv("GALLERY_VIEWER_DATA_DIR") or "").strip()
    if override:
        return abs_path(override)
    if os.name == "nt":
        base = os.getenv("APPDATA") or os.path.expanduser("~")
        return Path(base) / _APP_DIR_NAME
    xdg = (os.getenv("XDG_DATA_HOME") or "").strip()
    base_dir = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base_dir / _APP_DIR_NAME


def ensure_data_dir(path: str | Path) -> Path:
    """Create the data directory if needed and return it as an absolute path."""
    p = abs_path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise GalleryError(ErrorKind.IO_FAILURE, p, f"Failed to create app data directory: {exc}") from exc
    if not p.is_dir():
        raise GalleryError(ErrorKind.IO_FAILURE, p, "app data path is not a directory")
    return p
