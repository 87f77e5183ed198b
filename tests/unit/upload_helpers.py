"""Helpers shared by the unit tests (not fixtures)."""

from __future__ import annotations

from unittest.mock import MagicMock

from upload_service.pipeline.codec import encode
from upload_service.pipeline.types import FileSubmission

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
CORRUPT_PDF_BYTES = b"%PDF-1.4 this is not really a pdf"


def make_submission(name: str, content_type: str, data: bytes) -> FileSubmission:
    return FileSubmission(name=name, content_type=content_type, size=len(data), encoded_bytes=encode(data))


def uploaded_paths(storage_client: MagicMock) -> list[str]:
    """Object names passed to bucket.blob(), in call order."""
    return [c.args[0] for c in storage_client.bucket.return_value.blob.call_args_list]
