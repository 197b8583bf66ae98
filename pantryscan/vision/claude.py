"""Claude API vision backend."""

from __future__ import annotations

import base64

from ..errors import BackendError, EmptyResponseError
from ..models import PreparedImage
from . import VisionBackend


class ClaudeVisionBackend(VisionBackend):
    """Describe fridge photos using Claude's vision capability."""

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929"
    ) -> None:
        self._api_key = api_key
        self._model = model

    async def describe(self, images: list[PreparedImage], prompt: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content: list[dict] = []
        for image in images:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": "image/jpeg",
                        "data": base64.standard_b64encode(image.data).decode(),
                    },
                }
            )
        content.append({"type": "text", "text": prompt})

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=4096,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            raise BackendError(f"Claude request failed: {e}") from e

        text = "".join(
            getattr(block, "text", "") or "" for block in response.content
        )
        if not text.strip():
            raise EmptyResponseError()
        return text
