"""Turn raw backend detections into canonical inventory items."""

from __future__ import annotations

import math
from typing import Iterable

from .models import CanonicalItem, CategoryTag, RawDetection

CONFIDENCE_THRESHOLD = 0.6

# Words that end like plurals but are already singular.
SINGULAR_EXCEPTIONS = frozenset(
    {
        "cheese",
        "lettuce",
        "rice",
        "juice",
        "sauce",
        "hummus",
        "asparagus",
        "broccoli",
        "celery",
    }
)

# (suffix, replacement, minimum stem length) - first match wins. A word
# matches when len(word) > len(suffix) + minimum stem length. "-es" is only
# stripped after sibilants.
PLURAL_RULES: tuple[tuple[str, str, int], ...] = (
    ("ies", "y", 2),  # berries -> berry
    ("ves", "f", 2),  # leaves -> leaf
    ("oes", "o", 2),  # tomatoes -> tomato
    ("sses", "ss", 0),  # glasses -> glass
    ("shes", "sh", 0),  # radishes -> radish
    ("ches", "ch", 0),  # peaches -> peach
    ("xes", "x", 1),  # boxes -> box
    ("zes", "z", 1),
    ("s", "", 2),  # apples -> apple
)


def singularize(word: str) -> str:
    """Apply the first matching plural rule to a lowercase word."""
    if word in SINGULAR_EXCEPTIONS:
        return word
    for suffix, replacement, min_stem in PLURAL_RULES:
        if word.endswith(suffix) and len(word) > len(suffix) + min_stem:
            return word[: -len(suffix)] + replacement
    return word


def normalize_name(name: str) -> str:
    """Lowercase, trim, singularize and capitalize the first character."""
    word = singularize(name.lower().strip())
    return word[:1].upper() + word[1:]


def normalize_detections(
    detections: Iterable[RawDetection], threshold: float = CONFIDENCE_THRESHOLD
) -> list[CanonicalItem]:
    """Filter, merge and categorize detections.

    Detections below ``threshold`` are dropped. The rest are grouped by
    normalized name; each group becomes one item whose quantity is the group
    size and whose confidence and category come from the first member with the
    highest confidence. Items are ordered by confidence, highest first, with
    ties kept in the order their names were first seen.
    """
    groups: dict[str, list[RawDetection]] = {}
    for detection in detections:
        if math.isnan(detection.confidence) or detection.confidence < threshold:
            continue
        groups.setdefault(normalize_name(detection.name), []).append(detection)

    items: list[CanonicalItem] = []
    for name, members in groups.items():
        best = max(members, key=lambda d: d.confidence)  # first max wins
        items.append(
            CanonicalItem(
                name=name,
                category=CategoryTag.from_string(best.category),
                confidence=best.confidence,
                quantity=len(members),
            )
        )

    items.sort(key=lambda item: item.confidence, reverse=True)
    return items
