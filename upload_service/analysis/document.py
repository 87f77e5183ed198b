from __future__ import annotations

import asyncio
import logging

from upload_service.analysis.model import AnalysisModel
from upload_service.analysis.pdf import PdfTextExtractor
from upload_service.config import DEFAULT_DOC_MAX_CHARS, DEFAULT_TRUNCATION_MARKER

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "Please provide a comprehensive summary of the following document, "
    "covering its key points and main ideas:"
)


def truncate_text(text: str, max_chars: int, marker: str = DEFAULT_TRUNCATION_MARKER) -> str:
    """Cut ``text`` to ``max_chars`` and append ``marker``; shorter text is returned as is."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker


def build_summary_prompt(text: str) -> str:
    return f"{SUMMARY_PROMPT}\n\n{text}"


class DocumentAnalyzer:
    def __init__(
        self,
        *,
        model: AnalysisModel,
        extractor: PdfTextExtractor | None = None,
        max_chars: int = DEFAULT_DOC_MAX_CHARS,
        truncation_marker: str = DEFAULT_TRUNCATION_MARKER,
    ) -> None:
        self._model = model
        self._extractor = extractor or PdfTextExtractor()
        self._max = max(1, int(max_chars))
        self._marker = truncation_marker

    async def analyze(self, raw_bytes: bytes) -> str:
        # pypdf parsing is CPU/blocking; keep it off the event loop
        text = await asyncio.to_thread(self._extractor.extract, raw_bytes)
        logger.info("Document converted to text, length: %d", len(text))

        body = truncate_text(text, self._max, self._marker)
        if len(body) != len(text):
            logger.info("Document text truncated from %d to %d chars", len(text), self._max)

        summary = await self._model.generate(build_summary_prompt(body))
        logger.info("Document analysis completed")
        return summary
