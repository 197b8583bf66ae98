"""Data types shared by the scan pipeline and the inventory store."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum


class CategoryTag(Enum):
    DAIRY = "dairy"
    MEAT = "meat"
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    BEVERAGES = "beverages"
    CONDIMENTS = "condiments"
    LEFTOVERS = "leftovers"
    SNACKS = "snacks"
    FROZEN = "frozen"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str | None) -> CategoryTag:
        """Resolve a free-form category string, defaulting to OTHER.

        Matching is case-insensitive and exact against the member names.
        """
        if not isinstance(value, str):
            return cls.OTHER
        return _CATEGORY_LOOKUP.get(value.upper(), cls.OTHER)


_CATEGORY_LOOKUP: dict[str, CategoryTag] = {tag.name: tag for tag in CategoryTag}


@dataclass
class RawDetection:
    name: str
    category: str  # free-form, as returned by the backend
    confidence: float


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class CanonicalItem:
    """A normalized inventory entry."""

    name: str
    category: CategoryTag
    confidence: float  # passed through unclamped
    quantity: int = 1
    id: str = field(default_factory=_new_id)
    added_at: int = field(default_factory=_now_millis)  # epoch millis

    def __post_init__(self) -> None:
        if self.quantity < 1:
            self.quantity = 1

    @classmethod
    def manual(
        cls, name: str, category: CategoryTag = CategoryTag.OTHER, quantity: int = 1
    ) -> CanonicalItem:
        """Create an item entered by hand (confidence is always 1.0)."""
        return cls(name=name, category=category, confidence=1.0, quantity=quantity)

    def with_quantity(self, quantity: int) -> CanonicalItem:
        return replace(self, quantity=max(quantity, 1))

    def renamed(self, name: str) -> CanonicalItem:
        return replace(self, name=name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "confidence": self.confidence,
            "quantity": self.quantity,
            "added_at": self.added_at,
        }


@dataclass
class PreparedImage:
    """A decoded, oriented, bounded and JPEG-compressed image."""

    data: bytes
    width: int
    height: int
    quality: int


@dataclass
class ScanResult:
    ok: bool
    items: list[CanonicalItem] = field(default_factory=list)
    error: str | None = None
    images_sent: int = 0
    images_dropped: int = 0

    @classmethod
    def success(
        cls,
        items: list[CanonicalItem],
        *,
        images_sent: int = 0,
        images_dropped: int = 0,
    ) -> ScanResult:
        return cls(
            ok=True,
            items=items,
            images_sent=images_sent,
            images_dropped=images_dropped,
        )

    @classmethod
    def failure(
        cls, message: str, *, images_sent: int = 0, images_dropped: int = 0
    ) -> ScanResult:
        return cls(
            ok=False,
            error=message,
            images_sent=images_sent,
            images_dropped=images_dropped,
        )


@dataclass
class SourceImage:
    """Raw image bytes handed over by a capture source.

    ``rotation_degrees`` is the sensor rotation reported by a live capture.
    ``None`` means the bytes come from a stored file and the embedded EXIF
    orientation tag should be used instead.
    """

    data: bytes
    rotation_degrees: int | None = None
    origin: str = ""
