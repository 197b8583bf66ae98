"""Scan orchestration: photos in, stored inventory items out."""

from __future__ import annotations

import logging
from typing import Sequence

from .db import InventoryStore
from .errors import ParseError, StoreError
from .imaging import COMPRESSION_QUALITY, MAX_IMAGE_DIMENSION, prepare_batch
from .models import CanonicalItem, CategoryTag, ScanResult, SourceImage
from .normalizer import CONFIDENCE_THRESHOLD, normalize_detections
from .vision import DETECTION_PROMPT, VisionBackend, parse_response

logger = logging.getLogger(__name__)


class InventoryPipeline:
    """Run one scan at a time against a vision backend and an inventory store.

    The backend may be ``None`` when only manual edits are needed.

    A scan either stores every resulting item in one batch or stores nothing.
    Concurrent scans are not serialized here; callers run one at a time.
    """

    def __init__(
        self,
        backend: VisionBackend | None,
        store: InventoryStore,
        *,
        threshold: float = CONFIDENCE_THRESHOLD,
        max_dimension: int = MAX_IMAGE_DIMENSION,
        quality: int = COMPRESSION_QUALITY,
        prompt: str = DETECTION_PROMPT,
    ) -> None:
        self._backend = backend
        self._store = store
        self._threshold = threshold
        self._max_dimension = max_dimension
        self._quality = quality
        self._prompt = prompt

    async def analyze(self, sources: Sequence[SourceImage]) -> ScanResult:
        """Detect and normalize items without touching the store."""
        if not sources:
            return ScanResult.failure("No images to analyze")
        if self._backend is None:
            return ScanResult.failure("No vision backend configured")

        images = await prepare_batch(
            sources, max_dimension=self._max_dimension, quality=self._quality
        )
        dropped = len(sources) - len(images)
        if not images:
            logger.warning("All %d image(s) failed preprocessing", len(sources))
            return ScanResult.failure(
                "No usable images: every image failed to decode",
                images_dropped=dropped,
            )
        if dropped:
            logger.warning("%d of %d image(s) dropped", dropped, len(sources))

        # CancelledError propagates; nothing has been stored yet.
        try:
            text = await self._backend.describe(images, self._prompt)
        except ParseError as e:
            return self._failed(str(e), len(images), dropped)
        except Exception as e:
            return self._failed(
                f"Failed to analyze images: {e}", len(images), dropped
            )

        try:
            detections = parse_response(text)
        except ParseError as e:
            return self._failed(str(e), len(images), dropped)

        items = normalize_detections(detections, self._threshold)
        logger.info(
            "%d detection(s) normalized into %d item(s)", len(detections), len(items)
        )
        return ScanResult.success(
            items, images_sent=len(images), images_dropped=dropped
        )

    async def scan(self, sources: Sequence[SourceImage]) -> ScanResult:
        """Analyze the photos and store the resulting items in one batch."""
        result = await self.analyze(sources)
        if not result.ok or not result.items:
            return result

        try:
            self._store.insert_batch(result.items)
        except StoreError as e:
            return self._failed(
                f"Failed to save items: {e}",
                result.images_sent,
                result.images_dropped,
            )
        return result

    def add_item(
        self,
        name: str,
        category: CategoryTag = CategoryTag.OTHER,
        quantity: int = 1,
    ) -> CanonicalItem:
        """Store a manually entered item."""
        item = CanonicalItem.manual(name.strip(), category, quantity)
        self._store.insert(item)
        return item

    def update_quantity(self, item_id: str, delta: int) -> CanonicalItem:
        """Change an item's quantity by ``delta``, keeping it at least 1."""
        item = self._store.get_by_id(item_id)
        if item is None:
            raise StoreError(f"No inventory item with id {item_id!r}")
        updated = item.with_quantity(item.quantity + delta)
        self._store.update(updated)
        return updated

    def rename_item(self, item_id: str, name: str) -> CanonicalItem:
        item = self._store.get_by_id(item_id)
        if item is None:
            raise StoreError(f"No inventory item with id {item_id!r}")
        updated = item.renamed(name.strip())
        self._store.update(updated)
        return updated

    @staticmethod
    def _failed(message: str, sent: int, dropped: int) -> ScanResult:
        logger.warning("Scan failed: %s", message)
        return ScanResult.failure(message, images_sent=sent, images_dropped=dropped)
