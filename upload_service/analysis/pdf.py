from __future__ import annotations

import io
import logging

from pypdf import PdfReader

from upload_service.errors import DocumentDecodeError

logger = logging.getLogger(__name__)


def normalize_text(text: str) -> str:
    if not text:
        return ""
    # Remove null bytes, normalize whitespace a bit
    text = text.replace("\x00", "")
    # Collapse very long runs of blank lines
    while "\n\n\n\n" in text:
        text = text.replace("\n\n\n\n", "\n\n\n")
    return text.strip()


class PdfTextExtractor:
    def extract(self, data: bytes) -> str:
        """Extract plain text from PDF bytes.

        Raises:
            DocumentDecodeError: If the bytes are not a readable PDF or hold no text.
        """
        try:
            r = PdfReader(io.BytesIO(data))
            parts: list[str] = []
            for p in r.pages:
                t = p.extract_text() or ""
                if t.strip():
                    parts.append(t)
        except Exception as e:
            logger.warning("PyPDF text extraction failed: %s", e)
            raise DocumentDecodeError(f"Invalid or corrupted document: {e}") from e

        text = normalize_text("\n".join(parts))
        if not text:
            raise DocumentDecodeError("Document contains no extractable text")
        logger.debug("Extracted %d chars from %d pages", len(text), len(r.pages))
        return text
