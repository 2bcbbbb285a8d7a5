from __future__ import annotations

import sqlite3
from collections.abc import Callable

from ..metrics import metrics

# Migration function signature: (conn: sqlite3.Connection) -> None
MigrationFn = Callable[[sqlite3.Connection], None]


def _upgrade_to_1(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS thumbnails (
            cache_key TEXT PRIMARY KEY,
            source_path TEXT NOT NULL,
            source_modified_unix INTEGER NOT NULL,
            thumbnail_blob BLOB NOT NULL,
            mime_type TEXT NOT NULL
        )
        """
    )
    conn.execute("PRAGMA user_version = 1")
    conn.commit()


MIGRATIONS_UPGRADE: dict[int, MigrationFn] = {1: _upgrade_to_1}


def get_latest_version() -> int:
    return max(MIGRATIONS_UPGRADE.keys()) if MIGRATIONS_UPGRADE else 0


def get_user_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("PRAGMA user_version").fetchone()
    return int(row[0]) if row else 0


def apply_migrations(conn: sqlite3.Connection) -> None:
    """Bring the DB to the latest user_version. Safe to call on every open."""
    current = get_user_version(conn)
    latest = get_latest_version()

    for v in range(current + 1, latest + 1):
        fn = MIGRATIONS_UPGRADE.get(v)
        if fn:
            with metrics.timed(f"migrations.apply_v{v}_duration"):
                fn(conn)
            metrics.inc(f"migrations.applied_v{v}")
