from __future__ import annotations

import os
from pathlib import Path

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.logger import get_logger
from gallery_viewer.path_utils import abs_path

from .classifier import is_supported

_logger = get_logger("walker")


def walk(root: str | Path) -> list[Path]:
    """Recursively collect supported image files under ``root``.

    Traversal uses an explicit directory stack, so tree depth is not bound by
    the interpreter's recursion limit. Unreadable directories and entries are
    skipped with a warning. Directory symlinks are not followed.

    Returns absolute paths sorted component-wise.
    """
    folder = abs_path(root)
    if not folder.is_dir():
        raise GalleryError(ErrorKind.INVALID_ROOT, folder)

    images: list[Path] = []
    directories: list[Path] = [folder]
    while directories:
        current = directories.pop()
        try:
            it = os.scandir(current)
        except OSError as exc:
            _logger.warning("Skipping unreadable directory while scanning (%s): %s", current, exc)
            continue

        with it:
            while True:
                try:
                    entry = next(it)
                except StopIteration:
                    break
                except OSError as exc:
                    # Only this entry is dropped; a closed iterator ends with StopIteration.
                    _logger.warning("Skipping unreadable folder entry in %s: %s", current, exc)
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        directories.append(Path(entry.path))
                        continue
                    if entry.is_file() and is_supported(entry.name):
                        images.append(Path(entry.path))
                except OSError as exc:
                    _logger.warning("Skipping unreadable folder entry (%s): %s", entry.path, exc)

    images.sort(key=lambda p: p.parts)
    _logger.debug("walk: root=%s images=%d", folder, len(images))
    return images
