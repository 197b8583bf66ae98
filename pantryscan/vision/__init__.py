"""Vision backend base class, detection prompt, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .parser import parse_response

if TYPE_CHECKING:
    from ..config import PantryConfig
    from ..models import PreparedImage

DETECTION_PROMPT = """\
Analyze the image of a refrigerator.
List only visible food items.
Ignore containers, plates, and non-food objects.
Use generic food names in singular form.
Return a JSON object with an "items" array containing objects with:
- name: string (generic food name)
- category: string (one of: dairy, meat, vegetables, fruits, beverages, condiments, leftovers, snacks, frozen, other)
- confidence: number (0-1)

Example response format:
{"items":[{"name":"milk","category":"dairy","confidence":0.95}]}

Return ONLY valid JSON, no explanations or markdown.
"""


class VisionBackend(ABC):
    """Abstract base for a request/response image description service."""

    @abstractmethod
    async def describe(self, images: list[PreparedImage], prompt: str) -> str:
        """Send the JPEG images and the prompt, return the raw text reply.

        A single attempt is made; retrying is up to the caller.
        """
        ...


def create_backend(config: PantryConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
            )
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
            )
        case _:
            raise ValueError(
                f"Unknown vision backend: {backend_name!r} "
                f"(choose claude or gemini)"
            )


__all__ = [
    "DETECTION_PROMPT",
    "VisionBackend",
    "create_backend",
    "parse_response",
]
