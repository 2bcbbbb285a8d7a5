from __future__ import annotations

import contextlib
import sqlite3
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from gallery_viewer.errors import ErrorKind, GalleryError
from gallery_viewer.logger import get_logger

from ..metrics import metrics
from .migrations import apply_migrations

_logger = get_logger("thumbnail_store")

DB_FILE_NAME = "thumbnail_cache.sqlite"

_UPSERT_SQL = """
    INSERT INTO thumbnails (
        cache_key, source_path, source_modified_unix, thumbnail_blob, mime_type
    )
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT(cache_key) DO UPDATE SET
        source_path = excluded.source_path,
        source_modified_unix = excluded.source_modified_unix,
        thumbnail_blob = excluded.thumbnail_blob,
        mime_type = excluded.mime_type
"""


@dataclass(frozen=True)
class CacheEntry:
    cache_key: str
    source_path: str
    source_modified_unix: int
    thumbnail_blob: bytes
    mime_type: str

    def as_params(self) -> tuple[str, str, int, bytes, str]:
        return (
            self.cache_key,
            self.source_path,
            int(self.source_modified_unix),
            bytes(self.thumbnail_blob),
            self.mime_type,
        )


class ThumbnailStore:
    """SQLite-backed thumbnail cache keyed by path-derived cache key.

    One connection per store instance. The scanner opens a store per scan and
    is the only caller touching it; the lock only guards against accidental
    cross-thread use.

    Usage:
        with ThumbnailStore(db_path) as store:
            hit = store.lookup_fresh(key, mtime)
            store.upsert_batch(entries)
    """

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = 5000):
        self._path = Path(db_path)
        self._lock = threading.RLock()
        self._busy_timeout_ms = int(busy_timeout_ms)
        self._conn: sqlite3.Connection | None = None
        try:
            self._conn = self._open_conn()
            self.ensure_schema()
        except sqlite3.Error as exc:
            self.close()
            raise GalleryError(ErrorKind.STORE_UNAVAILABLE, self._path, f"Failed to open cache database: {exc}") from exc

    @property
    def db_path(self) -> Path:
        return self._path

    def _open_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error:
            _logger.debug("PRAGMA journal_mode=WAL failed", exc_info=True)
        try:
            conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        except sqlite3.Error:
            _logger.debug("PRAGMA busy_timeout failed", exc_info=True)
        return conn

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise GalleryError(ErrorKind.STORE_UNAVAILABLE, self._path, "store is closed")
        return self._conn

    def ensure_schema(self) -> None:
        with self._lock:
            apply_migrations(self._connection())

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                with contextlib.suppress(sqlite3.Error):
                    self._conn.close()
                self._conn = None

    def __enter__(self) -> ThumbnailStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()

    def lookup_fresh(self, cache_key: str, modified_unix: int) -> tuple[bytes, str] | None:
        """Return ``(blob, mime)`` only if the stored timestamp equals ``modified_unix``."""
        with self._lock:
            try:
                row = (
                    self._connection()
                    .execute(
                        "SELECT thumbnail_blob, mime_type FROM thumbnails "
                        "WHERE cache_key = ? AND source_modified_unix = ?",
                        (cache_key, int(modified_unix)),
                    )
                    .fetchone()
                )
            except sqlite3.Error as exc:
                raise GalleryError(
                    ErrorKind.STORE_UNAVAILABLE, self._path, f"Failed to read cache entry: {exc}"
                ) from exc
        if row is None:
            metrics.inc("thumbnail_store.miss")
            return None
        metrics.inc("thumbnail_store.hit")
        return bytes(row[0]), str(row[1])

    def upsert(self, entry: CacheEntry) -> None:
        self.upsert_batch([entry])

    def upsert_batch(self, entries: Iterable[CacheEntry]) -> int:
        """Write all entries in one transaction; nothing is kept if any write fails.

        Returns the number of entries written. Failures raise STORE_UNAVAILABLE.
        """
        params = [e.as_params() for e in entries]
        if not params:
            return 0
        with self._lock:
            conn = self._connection()
            try:
                with metrics.timed("thumbnail_store.batch_duration"), conn:
                    conn.executemany(_UPSERT_SQL, params)
            except sqlite3.Error as exc:
                raise GalleryError(
                    ErrorKind.STORE_UNAVAILABLE, self._path, f"Failed to commit cache transaction: {exc}"
                ) from exc
        metrics.inc("thumbnail_store.batch_commit")
        _logger.debug("upsert_batch: %d entries committed to %s", len(params), self._path)
        return len(params)

    def count(self) -> int:
        with self._lock:
            row = self._connection().execute("SELECT count(*) FROM thumbnails").fetchone()
        return int(row[0]) if row else 0

    def probe(self, cache_key: str) -> CacheEntry | None:
        """Return the stored row for ``cache_key`` regardless of freshness."""
        with self._lock:
            row = (
                self._connection()
                .execute(
                    "SELECT cache_key, source_path, source_modified_unix, thumbnail_blob, mime_type "
                    "FROM thumbnails WHERE cache_key = ?",
                    (cache_key,),
                )
                .fetchone()
            )
        if row is None:
            return None
        return CacheEntry(str(row[0]), str(row[1]), int(row[2]), bytes(row[3]), str(row[4]))


def open_store(data_dir: Path | str, retries: int = 3) -> ThumbnailStore:
    """Open the cache DB under ``data_dir``, retrying briefly if it is locked."""
    db_path = Path(data_dir) / DB_FILE_NAME
    attempt = 0
    while True:
        try:
            return ThumbnailStore(db_path)
        except GalleryError as exc:
            attempt += 1
            cause = exc.__cause__
            if attempt > retries or not isinstance(cause, sqlite3.OperationalError):
                raise
            metrics.inc("thumbnail_store.open_retries")
            time.sleep(0.05 * attempt)
