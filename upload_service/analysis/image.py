from __future__ import annotations

import logging

from upload_service.analysis.model import AnalysisModel
from upload_service.pipeline.dispatch import normalize_mime

logger = logging.getLogger(__name__)

IMAGE_PROMPT = "Describe this image in detail, including what you see and any notable elements."
DEFAULT_IMAGE_MIME = "image/jpeg"


def attachment_mime(content_type: str | None) -> str:
    """Concrete image MIME type for the inline attachment."""
    mime = normalize_mime(content_type)
    subtype = mime.partition("/")[2]
    if mime.startswith("image/") and subtype and subtype != "*":
        return mime
    return DEFAULT_IMAGE_MIME


class ImageAnalyzer:
    def __init__(self, *, model: AnalysisModel) -> None:
        self._model = model

    async def analyze(self, raw_bytes: bytes, content_type: str | None = None) -> str:
        mime = attachment_mime(content_type)
        logger.info("Starting image analysis (%s, %d bytes)", mime, len(raw_bytes))
        text = await self._model.generate(IMAGE_PROMPT, attachment=raw_bytes, mime_type=mime)
        logger.info("Image analysis completed")
        return text
