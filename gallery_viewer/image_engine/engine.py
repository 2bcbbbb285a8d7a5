"""GalleryEngine: Qt-facing wrapper around GalleryScanner.

The scan runs on a worker QThread; results cross back to the UI thread as
plain Python payloads (str/int/dict) through signals:

- ``scan_progress(current, total, name)`` once per classified image
- ``scan_finished(dict)`` with ``{"items": [...], "cancelled": bool}``
- ``error(where, message)`` for failures rendered as text

Each scan carries a generation id; signals from a superseded scan are dropped.
No Qt GUI types are created here.
"""

from __future__ import annotations

import contextlib
from pathlib import Path

from PySide6.QtCore import QObject, QThread, Signal

from gallery_viewer.errors import GalleryError
from gallery_viewer.logger import get_logger

from .cancellation import CancellationToken
from .full_image import load_full_image
from .scanner import GalleryScanner, ScanProgress

_logger = get_logger("engine")


class ScanWorker(QObject):
    """Runs one scan; ``run`` is the QThread entry point and always emits
    either ``finished`` or ``failed``."""

    progress = Signal(int, int, int, str)  # generation, current, total, name
    finished = Signal(int, dict)  # generation, {"items": list[dict], "cancelled": bool}
    failed = Signal(int, str)  # generation, human-readable message

    def __init__(
        self,
        scanner: GalleryScanner,
        folder_path: str,
        thumbnail_size: int,
        *,
        embed_thumbnails: bool = False,
        generation: int = 0,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._scanner = scanner
        self._generation = int(generation)
        self._folder_path = folder_path
        self._thumbnail_size = int(thumbnail_size)
        self._embed = bool(embed_thumbnails)
        self.token = CancellationToken()

    def _emit_progress(self, event: ScanProgress) -> None:
        self.progress.emit(self._generation, event.current, event.total, event.name)

    def run(self) -> None:
        try:
            result = self._scanner.scan_folder(
                self._folder_path,
                self._thumbnail_size,
                progress=self._emit_progress,
                embed_thumbnails=self._embed,
                token=self.token,
            )
        except (GalleryError, ValueError) as exc:
            _logger.error("scan failed: %s", exc)
            self.failed.emit(self._generation, str(exc))
            return
        _logger.info("scan finished: %s", result.status_text())
        self.finished.emit(self._generation, result.to_dict())

    def stop(self) -> None:
        self.token.cancel()


class GalleryEngine(QObject):
    scan_started = Signal(str)  # folder_path
    scan_progress = Signal(int, int, str)  # current, total, name
    scan_finished = Signal(dict)  # {"items": list[dict], "cancelled": bool}
    thumbnail_ready = Signal(str, str)  # path, data_url
    image_ready = Signal(str, str)  # path, data_url
    error = Signal(str, str)  # where, message

    def __init__(
        self,
        data_dir: Path | str,
        *,
        max_workers: int | None = None,
        scanner: GalleryScanner | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._scanner = scanner if scanner is not None else GalleryScanner(data_dir, max_workers=max_workers)
        self._scan_thread: QThread | None = None
        self._scan_worker: ScanWorker | None = None
        self._scan_generation: int = 0
        # Threads that outlived _stop_scan's wait; held until they finish.
        self._retired_threads: list[QThread] = []

    @property
    def scanner(self) -> GalleryScanner:
        return self._scanner

    def is_scanning(self) -> bool:
        return self._scan_thread is not None

    # ---- scan -----------------------------------------------------
    def open_folder(self, folder_path: str, thumbnail_size: int, *, embed_thumbnails: bool = False) -> None:
        """Start a background scan; a scan already running is cancelled first."""
        self._stop_scan()

        self._scan_generation += 1
        worker = ScanWorker(
            self._scanner,
            folder_path,
            thumbnail_size,
            embed_thumbnails=embed_thumbnails,
            generation=self._scan_generation,
        )
        thread = QThread(self)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.progress.connect(self._on_scan_progress)
        worker.finished.connect(self._on_scan_finished)
        worker.failed.connect(self._on_scan_failed)
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(lambda t=thread: self._on_thread_finished(t))

        self._scan_thread = thread
        self._scan_worker = worker
        self.scan_started.emit(folder_path)
        thread.start()

    def cancel_scan(self) -> None:
        if self._scan_worker is not None:
            self._scan_worker.stop()
        self._scanner.cancel()

    def _on_scan_progress(self, generation: int, current: int, total: int, name: str) -> None:
        if generation != self._scan_generation:
            return
        self.scan_progress.emit(current, total, name)

    def _on_scan_finished(self, generation: int, payload: dict) -> None:
        # Ignore stale scan completion.
        if generation != self._scan_generation:
            _logger.debug("dropping result of superseded scan: gen=%d", generation)
            return
        self.scan_finished.emit(payload)

    def _on_scan_failed(self, generation: int, message: str) -> None:
        if generation != self._scan_generation:
            return
        self.error.emit("scan", message)

    def _on_thread_finished(self, thread: QThread) -> None:
        if self._scan_thread is thread:
            self._scan_thread = None
            self._scan_worker = None
        elif thread in self._retired_threads:
            self._retired_threads.remove(thread)

    def _stop_scan(self, wait_ms: int = 5000) -> None:
        thread = self._scan_thread
        if thread is None:
            return
        self.cancel_scan()
        stopped = True
        with contextlib.suppress(RuntimeError):
            thread.quit()
            stopped = thread.wait(wait_ms)
        if not stopped:
            _logger.warning("scan thread still running after %d ms; keeping it until it finishes", wait_ms)
            self._retired_threads.append(thread)
        self._scan_thread = None
        self._scan_worker = None

    # ---- single items ---------------------------------------------
    def request_thumbnail(self, path: str, thumbnail_size: int) -> None:
        try:
            data_url = self._scanner.get_thumbnail(path, thumbnail_size)
        except (GalleryError, ValueError) as exc:
            self.error.emit("thumbnail", str(exc))
            return
        self.thumbnail_ready.emit(path, data_url)

    def load_full_image(self, path: str) -> None:
        try:
            data_url = load_full_image(path)
        except GalleryError as exc:
            self.error.emit("full_image", str(exc))
            return
        self.image_ready.emit(path, data_url)

    def shutdown(self) -> None:
        self._stop_scan()
