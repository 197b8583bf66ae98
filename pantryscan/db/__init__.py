"""Inventory store interface and its SQLite implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from ..models import CanonicalItem

InventoryListener = Callable[[list[CanonicalItem]], None]


class InventoryStore(ABC):
    """Persistence contract consumed by the scan pipeline."""

    @abstractmethod
    def get_all(self) -> list[CanonicalItem]: ...

    @abstractmethod
    def get_by_id(self, item_id: str) -> CanonicalItem | None: ...

    @abstractmethod
    def insert(self, item: CanonicalItem) -> None: ...

    @abstractmethod
    def insert_batch(self, items: list[CanonicalItem]) -> None: ...

    @abstractmethod
    def update(self, item: CanonicalItem) -> None: ...

    @abstractmethod
    def delete(self, item: CanonicalItem) -> None: ...

    @abstractmethod
    def delete_by_id(self, item_id: str) -> None: ...

    @abstractmethod
    def delete_all(self) -> None: ...

    @abstractmethod
    def search(self, query: str) -> list[CanonicalItem]: ...

    @abstractmethod
    def subscribe(self, listener: InventoryListener) -> Callable[[], None]: ...


from .inventory import InventoryDB  # noqa: E402
from .schema import ensure_schema  # noqa: E402

__all__ = [
    "InventoryDB",
    "InventoryListener",
    "InventoryStore",
    "ensure_schema",
]
