"""Parse the free-text vision backend reply into raw detections."""

from __future__ import annotations

import json
import logging
import re

from ..errors import EmptyResponseError, InvalidFormatError
from ..models import RawDetection

logger = logging.getLogger(__name__)

# Greedy on purpose: first "{" through last "}" so nested objects survive.
_ITEMS_OBJECT = re.compile(r"\{.*\"items\".*\}", re.DOTALL)


def _strip_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def _decode_items(text: str) -> list[RawDetection]:
    payload = json.loads(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise ValueError('expected an object with an "items" array')

    detections: list[RawDetection] = []
    for entry in payload["items"]:
        if not isinstance(entry, dict):
            continue
        try:
            confidence = float(entry.get("confidence", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0
        detections.append(
            RawDetection(
                name=str(entry.get("name") or ""),
                category=str(entry.get("category") or "other"),
                confidence=confidence,
            )
        )
    return detections


def parse_response(text: str | None) -> list[RawDetection]:
    """Extract ``{"items": [...]}`` from a backend reply.

    The reply may be wrapped in markdown fences or surrounded by prose. If a
    direct decode fails, the span from the first ``{`` to the last ``}`` that
    mentions ``"items"`` is decoded instead.

    Raises:
        EmptyResponseError: If the reply is empty.
        InvalidFormatError: If no usable JSON object can be recovered.
    """
    if text is None or not text.strip():
        raise EmptyResponseError()

    cleaned = _strip_fences(text)
    try:
        return _decode_items(cleaned)
    except (ValueError, RecursionError) as e:
        logger.debug("Direct decode failed (%s); searching for embedded JSON", e)

    match = _ITEMS_OBJECT.search(cleaned)
    if match is None:
        raise InvalidFormatError()
    try:
        return _decode_items(match.group(0))
    except (ValueError, RecursionError) as e:
        raise InvalidFormatError(
            f"Failed to parse vision backend response: {e}"
        ) from e
