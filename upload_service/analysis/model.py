"""Gemini client wrapper used by the image and document analyzers.

The client is built once by the entry point and injected; nothing in the
pipeline reaches for a module-level singleton.
"""

from __future__ import annotations

import asyncio
import logging
import os

from google import genai
from google.genai import types

from upload_service.config import VERTEX_LOCATION, VERTEX_PROJECT
from upload_service.errors import AnalysisError

logger = logging.getLogger(__name__)


def _is_gcp_environment() -> bool:
    """Detect if running on GCP (Cloud Run, GCE, etc.)."""
    return bool(os.getenv("K_SERVICE") or os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))


def build_genai_client() -> genai.Client:
    """Gemini client with automatic credential detection."""
    if _is_gcp_environment():
        return genai.Client(vertexai=True, project=VERTEX_PROJECT, location=VERTEX_LOCATION)
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ValueError(
            "GEMINI_API_KEY not set. Set it for local dev or run on GCP for ADC."
        )
    return genai.Client(api_key=api_key)


class AnalysisModel:
    def __init__(self, *, client: genai.Client, model: str) -> None:
        self._client = client
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def generate_sync(
        self, prompt: str, *, attachment: bytes | None = None, mime_type: str | None = None
    ) -> str:
        """Single generate_content call; blocking.

        Raises:
            AnalysisError: If the API call fails or the response has no text.
        """
        contents: list[str | types.Part] = [prompt]
        if attachment is not None:
            if not mime_type:
                raise AnalysisError("mime_type is required for binary attachments")
            contents.append(types.Part.from_bytes(data=attachment, mime_type=mime_type))

        try:
            response = self._client.models.generate_content(model=self._model, contents=contents)
        except Exception as e:
            raise AnalysisError(f"Analysis model call failed: {e}") from e

        text = response.text
        if text is None or not text.strip():
            raise AnalysisError("Analysis model returned no text")
        return text

    async def generate(
        self, prompt: str, *, attachment: bytes | None = None, mime_type: str | None = None
    ) -> str:
        return await asyncio.to_thread(
            self.generate_sync, prompt, attachment=attachment, mime_type=mime_type
        )

    async def check(self) -> bool:
        """Quick health check: verify the model endpoint is reachable."""
        try:
            await asyncio.to_thread(self._client.models.get, model=self._model)
            return True
        except Exception:
            logger.warning("Analysis model health check failed", exc_info=True)
            return False
