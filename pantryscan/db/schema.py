"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 1

_DDL = """
CREATE TABLE IF NOT EXISTS food_items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'OTHER',
    confidence REAL NOT NULL,
    quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
    added_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_food_items_name ON food_items(name);
CREATE INDEX IF NOT EXISTS idx_food_items_added_at ON food_items(added_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""

MEMORY = ":memory:"


def _connect(db_path: str | Path) -> sqlite3.Connection:
    if str(db_path) == MEMORY:
        return sqlite3.connect(MEMORY)
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def schema_version(conn: sqlite3.Connection) -> int:
    """Return the stored schema version, or 0 for a fresh database."""
    has_table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ).fetchone()
    if has_table is None:
        return 0
    (version,) = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return version or 0


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open the inventory database, creating or upgrading its tables.

    ``":memory:"`` gives a private in-memory database without WAL or a
    parent directory.
    """
    conn = _connect(db_path)
    conn.row_factory = sqlite3.Row

    if schema_version(conn) < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        with conn:
            conn.execute("DELETE FROM schema_version")
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,)
            )

    return conn
