"""GalleryScanner: folder scan + thumbnail cache pipeline.

A scan runs in two passes over the sorted image list:

1. Classify (sequential): one progress event per item, cache lookup keyed by
   path with mtime freshness. Hits are ready; misses are queued.
2. Generate (parallel): queued thumbnails are produced on a thread pool and
   persisted in a single transaction once the pool drains.

Cancellation is cooperative through a per-scan CancellationToken, checked
before each classify iteration, before each generation unit and once after
the pool drains. A batch that observed cancellation is not persisted.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.logger import get_logger
from gallery_viewer.path_utils import cache_key, ensure_data_dir

from .cancellation import CancellationToken
from .classifier import is_supported
from .db.thumbnail_store import DB_FILE_NAME, CacheEntry, ThumbnailStore, open_store
from .decoder import generate_thumbnail
from .full_image import to_data_url
from .metrics import metrics
from .walker import walk

_logger = get_logger("scanner")

MAX_THUMBNAIL_SIZE = 4096

ThumbnailGenerator = Callable[[Path, int], tuple[bytes, str]]


@dataclass(frozen=True)
class ScanProgress:
    current: int
    total: int
    name: str


ProgressCallback = Callable[[ScanProgress], None]


@dataclass
class GalleryItem:
    name: str
    path: str
    thumbnail_data_url: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"name": self.name, "path": self.path}
        if self.thumbnail_data_url is not None:
            data["thumbnail_data_url"] = self.thumbnail_data_url
        return data


@dataclass
class ScanResult:
    items: list[GalleryItem]
    cancelled: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"items": [i.to_dict() for i in self.items], "cancelled": self.cancelled}

    def status_text(self) -> str:
        count = format_image_count(len(self.items))
        if self.cancelled:
            return f"Stopped. Loaded {count} before cancel."
        return f"Loaded {count}."


@dataclass(frozen=True)
class PendingThumbnail:
    image_path: Path
    cache_key: str
    modified_unix: int


@dataclass(frozen=True)
class GeneratedThumbnail:
    cache_key: str
    source_path: str
    modified_unix: int
    blob: bytes
    mime: str

    def to_entry(self) -> CacheEntry:
        return CacheEntry(self.cache_key, self.source_path, self.modified_unix, self.blob, self.mime)


def format_image_count(count: int) -> str:
    n = max(0, int(count))
    return f"{n} image{'' if n == 1 else 's'}"


def clamp_thumbnail_size(value: int) -> int:
    size = int(value)
    if size <= 0:
        raise ValueError(f"thumbnail size must be positive, got {value}")
    return min(MAX_THUMBNAIL_SIZE, size)


def modified_unix(path: Path) -> int:
    """Source mtime in whole seconds, the freshness stamp stored with each entry."""
    try:
        return int(os.stat(path).st_mtime)
    except OSError as exc:
        raise GalleryError(ErrorKind.IO_FAILURE, path, f"Failed to read metadata: {exc}") from exc


class GalleryScanner:
    """Owns the cache DB location and the active scan's cancellation token.

    Scans are serialized: starting a scan cancels the token of any scan still
    in flight, then waits for it to finish before touching the store.
    """

    def __init__(
        self,
        data_dir: Path | str,
        *,
        max_workers: int | None = None,
        generator: ThumbnailGenerator = generate_thumbnail,
    ) -> None:
        self._data_dir = Path(data_dir)
        self._max_workers = max(1, int(max_workers or os.cpu_count() or 1))
        self._generator = generator
        self._state_lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._token: CancellationToken | None = None

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def db_path(self) -> Path:
        return self._data_dir / DB_FILE_NAME

    def open_store(self) -> ThumbnailStore:
        return open_store(ensure_data_dir(self._data_dir))

    # ---- cancellation ---------------------------------------------
    def cancel(self) -> None:
        """Request cancellation of the active scan (no-op when idle)."""
        with self._state_lock:
            token = self._token
        if token is not None:
            _logger.info("scan cancel requested")
            token.cancel()

    def _arm(self, token: CancellationToken) -> None:
        with self._state_lock:
            previous = self._token
            if previous is not None and previous is not token:
                previous.cancel()
            token.reset()
            self._token = token

    def _disarm(self, token: CancellationToken) -> None:
        with self._state_lock:
            if self._token is token:
                self._token = None

    # ---- public API -----------------------------------------------
    def scan_folder(
        self,
        folder_path: Path | str,
        thumbnail_size: int,
        *,
        progress: ProgressCallback | None = None,
        embed_thumbnails: bool = False,
        token: CancellationToken | None = None,
    ) -> ScanResult:
        size = clamp_thumbnail_size(thumbnail_size)
        token = token if token is not None else CancellationToken()
        self._arm(token)
        try:
            with self._scan_lock, metrics.timed("scan.duration"):
                return self._run_scan(folder_path, size, token, progress, embed_thumbnails)
        finally:
            self._disarm(token)

    def get_thumbnail(self, path: Path | str, max_dimension: int) -> str:
        """Cached-or-generated thumbnail for a single file, as a data URL."""
        size = clamp_thumbnail_size(max_dimension)
        image_path = Path(path).absolute()
        if not image_path.is_file():
            raise GalleryError(ErrorKind.NOT_FOUND, image_path)
        if not is_supported(image_path):
            raise GalleryError(ErrorKind.UNSUPPORTED_FORMAT, image_path)

        mtime = modified_unix(image_path)
        key = cache_key(str(image_path))
        with self.open_store() as store:
            cached = store.lookup_fresh(key, mtime)
            if cached is not None:
                return to_data_url(*cached)
            blob, mime = self._generator(image_path, size)
            store.upsert(CacheEntry(key, str(image_path), mtime, blob, mime))
        return to_data_url(blob, mime)

    # ---- pipeline -------------------------------------------------
    def _run_scan(
        self,
        folder_path: Path | str,
        size: int,
        token: CancellationToken,
        progress: ProgressCallback | None,
        embed_thumbnails: bool,
    ) -> ScanResult:
        images = walk(folder_path)
        total = len(images)
        _logger.info("scan: folder=%s images=%d size=%d", folder_path, total, size)

        items: list[GalleryItem] = []
        pending: list[PendingThumbnail] = []
        pending_items: dict[str, GalleryItem] = {}
        skipped = 0
        cancelled = False

        with self.open_store() as store:
            for index, image_path in enumerate(images, start=1):
                if token.is_cancelled():
                    cancelled = True
                    break
                self._report(progress, ScanProgress(index, total, image_path.name or "image"))

                try:
                    item, pending_item, cached = self._prepare(store, image_path)
                except GalleryError as exc:
                    skipped += 1
                    _logger.warning("Skipping image during gallery scan (%s): %s", image_path, exc)
                    continue

                items.append(item)
                if pending_item is not None:
                    pending.append(pending_item)
                    pending_items[pending_item.cache_key] = item
                elif embed_thumbnails and cached is not None:
                    item.thumbnail_data_url = to_data_url(*cached)

            if not cancelled and pending:
                with metrics.timed("scan.generate_duration"):
                    generated = self._generate_all(pending, size, token)
                if token.is_cancelled():
                    cancelled = True

                if embed_thumbnails:
                    for g in generated:
                        pending_items[g.cache_key].thumbnail_data_url = to_data_url(g.blob, g.mime)

                if cancelled:
                    _logger.info("scan cancelled; discarding %d generated thumbnail(s)", len(generated))
                elif generated:
                    store.upsert_batch(g.to_entry() for g in generated)

        if skipped > 0:
            _logger.warning("Skipped %d image(s) while loading gallery", skipped)
        metrics.inc("scan.items", len(items))
        metrics.inc("scan.skipped", skipped)
        if cancelled:
            metrics.inc("scan.cancelled")
        return ScanResult(items=items, cancelled=cancelled)

    @staticmethod
    def _report(progress: ProgressCallback | None, event: ScanProgress) -> None:
        if progress is None:
            return
        try:
            progress(event)
        except Exception as exc:
            _logger.warning("Failed to emit thumbnail progress: %s", exc)

    @staticmethod
    def _prepare(
        store: ThumbnailStore, image_path: Path
    ) -> tuple[GalleryItem, PendingThumbnail | None, tuple[bytes, str] | None]:
        mtime = modified_unix(image_path)
        key = cache_key(str(image_path))
        cached = store.lookup_fresh(key, mtime)
        item = GalleryItem(name=image_path.name or "image", path=str(image_path))
        if cached is not None:
            return item, None, cached
        return item, PendingThumbnail(image_path=image_path, cache_key=key, modified_unix=mtime), None

    def _generate_all(
        self, pending: list[PendingThumbnail], size: int, token: CancellationToken
    ) -> list[GeneratedThumbnail]:
        workers = min(self._max_workers, len(pending))
        _logger.debug("generate: pending=%d workers=%d", len(pending), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="thumbgen") as pool:
            results = list(pool.map(lambda p: self._generate_one(p, size, token), pending))
        return [r for r in results if r is not None]

    def _generate_one(
        self, pending: PendingThumbnail, size: int, token: CancellationToken
    ) -> GeneratedThumbnail | None:
        if token.is_cancelled():
            return None
        try:
            blob, mime = self._generator(pending.image_path, size)
        except GalleryError as exc:
            _logger.warning("Skipping generated thumbnail due to error: %s", exc)
            return None
        except Exception:
            _logger.warning("Skipping generated thumbnail for %s", pending.image_path, exc_info=True)
            return None
        return GeneratedThumbnail(
            cache_key=pending.cache_key,
            source_path=str(pending.image_path),
            modified_unix=pending.modified_unix,
            blob=blob,
            mime=mime,
        )
