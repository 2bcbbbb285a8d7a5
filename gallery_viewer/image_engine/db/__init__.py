"""Thumbnail cache DB: schema migrations and the SQLite-backed store."""

from .thumbnail_store import DB_FILE_NAME, CacheEntry, ThumbnailStore, open_store

__all__ = [
    "DB_FILE_NAME",
    "CacheEntry",
    "ThumbnailStore",
    "open_store",
]
