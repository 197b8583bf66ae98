"""Gemini API vision backend."""

from __future__ import annotations

from ..errors import BackendError, EmptyResponseError
from ..models import PreparedImage
from . import VisionBackend


class GeminiVisionBackend(VisionBackend):
    """Describe fridge photos using Google Gemini's vision capability."""

    def __init__(self, api_key: str = "", model: str = "gemini-1.5-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def describe(self, images: list[PreparedImage], prompt: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
            from google.api_core import exceptions as google_exceptions
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts: list = [
            {"mime_type": "image/jpeg", "data": image.data} for image in images
        ]
        parts.append(prompt)

        try:
            response = await model.generate_content_async(parts)
        except google_exceptions.GoogleAPIError as e:
            raise BackendError(f"Gemini request failed: {e}") from e

        try:
            text = response.text
        except ValueError:
            # Raised by the SDK when the candidate was blocked or has no parts.
            text = ""
        if not text or not text.strip():
            raise EmptyResponseError()
        return text
