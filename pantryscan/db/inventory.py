"""Food inventory CRUD operations backed by SQLite."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Callable, Iterable

from ..errors import StoreError
from ..models import CanonicalItem, CategoryTag
from . import InventoryListener, InventoryStore
from .schema import ensure_schema

logger = logging.getLogger(__name__)

_UPSERT = """INSERT OR REPLACE INTO food_items
             (id, name, category, confidence, quantity, added_at)
             VALUES (?, ?, ?, ?, ?, ?)"""


def _row_to_item(row: sqlite3.Row) -> CanonicalItem:
    return CanonicalItem(
        id=row["id"],
        name=row["name"],
        category=CategoryTag.from_string(row["category"]),
        confidence=row["confidence"],
        quantity=row["quantity"],
        added_at=row["added_at"],
    )


def _item_params(item: CanonicalItem) -> tuple:
    return (
        item.id,
        item.name,
        item.category.name,
        item.confidence,
        item.quantity,
        item.added_at,
    )


class InventoryDB(InventoryStore):
    """Manages the food_items table."""

    def __init__(
        self, db_path: str | Path = "~/.config/pantryscan/inventory.db"
    ) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._listeners: list[InventoryListener] = []

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = ensure_schema(self._db_path)
            except (sqlite3.Error, OSError) as e:
                raise StoreError(f"Cannot open inventory database: {e}") from e
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _query(self, sql: str, params: tuple = ()) -> list[CanonicalItem]:
        try:
            rows = self._get_conn().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Inventory query failed: {e}") from e
        return [_row_to_item(r) for r in rows]

    def _write(self, sql: str, params: Iterable[tuple]) -> int:
        """Run one statement per parameter tuple in a single transaction."""
        conn = self._get_conn()
        try:
            with conn:
                changed = sum(conn.execute(sql, p).rowcount for p in params)
        except sqlite3.Error as e:
            raise StoreError(f"Inventory write failed: {e}") from e
        self._notify()
        return changed

    # -- reads ---------------------------------------------------------------

    def get_all(self) -> list[CanonicalItem]:
        """Return every item, newest first."""
        return self._query("SELECT * FROM food_items ORDER BY added_at DESC")

    def get_by_id(self, item_id: str) -> CanonicalItem | None:
        items = self._query("SELECT * FROM food_items WHERE id = ?", (item_id,))
        return items[0] if items else None

    def search(self, query: str) -> list[CanonicalItem]:
        """Return items whose name contains ``query`` (case-insensitive)."""
        escaped = (
            query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        )
        return self._query(
            """SELECT * FROM food_items
               WHERE name LIKE '%' || ? || '%' ESCAPE '\\'
               ORDER BY added_at DESC""",
            (escaped,),
        )

    # -- writes --------------------------------------------------------------

    def insert(self, item: CanonicalItem) -> None:
        self._write(_UPSERT, [_item_params(item)])

    def insert_batch(self, items: list[CanonicalItem]) -> None:
        """Insert all items atomically, replacing rows with the same id."""
        self._write(_UPSERT, [_item_params(i) for i in items])
        logger.info("Stored %d item(s)", len(items))

    def update(self, item: CanonicalItem) -> None:
        changed = self._write(
            """UPDATE food_items
               SET name = ?, category = ?, confidence = ?, quantity = ?
               WHERE id = ?""",
            [(item.name, item.category.name, item.confidence, item.quantity, item.id)],
        )
        if changed == 0:
            raise StoreError(f"No inventory item with id {item.id!r}")

    def delete(self, item: CanonicalItem) -> None:
        self.delete_by_id(item.id)

    def delete_by_id(self, item_id: str) -> None:
        self._write("DELETE FROM food_items WHERE id = ?", [(item_id,)])

    def delete_all(self) -> None:
        self._write("DELETE FROM food_items", [()])

    # -- live view -----------------------------------------------------------

    def subscribe(self, listener: InventoryListener) -> Callable[[], None]:
        """Call ``listener`` with the full inventory now and after each change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        listener(self.get_all())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_all()
        for listener in list(self._listeners):
            listener(snapshot)
