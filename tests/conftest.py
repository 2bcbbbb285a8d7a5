"""Pytest configuration.

The engine tests use PySide6 QObjects/QThreads. A single QCoreApplication is
created for the whole session (no display needed) and shut down at the end.
Shared fixtures create small real images with Pillow.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from gallery_viewer.image_engine.metrics import metrics
from gallery_viewer.logger import setup_logger

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    global _APP

    app = QCoreApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = app if app is not None else QCoreApplication([])


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    app = QCoreApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture(autouse=True)
def _logger_to_current_stderr():
    # pytest swaps sys.stderr per test; keep the project handler on the live stream.
    setup_logger()
    yield


@pytest.fixture
def make_image() -> Callable[..., Path]:
    def _make(path: Path, size: tuple[int, int] = (400, 300), color=(200, 30, 30), fmt: str | None = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def photos(tmp_path: Path, make_image) -> Path:
    """/photos with a.png, b.jpg, notes.txt and sub/c.png."""
    root = tmp_path / "photos"
    make_image(root / "a.png", (400, 300))
    make_image(root / "b.jpg", (300, 500), color=(10, 120, 200))
    (root / "notes.txt").write_text("not an image", encoding="utf-8")
    make_image(root / "sub" / "c.png", (64, 48), color=(0, 200, 0))
    return root


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "appdata"
