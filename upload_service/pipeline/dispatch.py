from __future__ import annotations

from upload_service.pipeline.types import ContentKind

PDF_MIME = "application/pdf"


def normalize_mime(content_type: str | None) -> str:
    """Lower-case a MIME type and drop any parameters (``; charset=...``)."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def classify(content_type: str | None) -> ContentKind:
    mime = normalize_mime(content_type)
    if mime.startswith("image/"):
        return ContentKind.IMAGE
    if mime == PDF_MIME:
        return ContentKind.DOCUMENT
    return ContentKind.UNRECOGNIZED
