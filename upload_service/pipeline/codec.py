from __future__ import annotations

import base64
import binascii
import logging

from upload_service.errors import MalformedPayloadError
from upload_service.pipeline.types import DecodedFile, FileSubmission

logger = logging.getLogger(__name__)


def encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def decode(encoded: str) -> bytes:
    """Decode a standard base64 payload into raw bytes.

    Accepts an optional ``data:<mime>;base64,`` prefix (browser FileReader
    output) and ignores embedded whitespace. Anything else that is not valid
    base64 raises MalformedPayloadError.
    """
    if not isinstance(encoded, str):
        raise MalformedPayloadError(f"Payload must be a base64 string, got {type(encoded).__name__}")

    text = encoded.strip()
    if text.startswith("data:"):
        head, sep, rest = text.partition(",")
        if not sep or not head.endswith(";base64"):
            raise MalformedPayloadError("Payload data URL is not base64-encoded")
        text = rest

    text = "".join(text.split())
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayloadError(f"Invalid base64 payload: {e}") from e


def decode_submission(sub: FileSubmission) -> DecodedFile:
    try:
        raw = decode(sub.encoded_bytes)
    except MalformedPayloadError as e:
        raise MalformedPayloadError(f"{sub.name}: {e}", file_name=sub.name) from e

    if sub.size is not None and sub.size != len(raw):
        logger.debug(
            "Decoded size differs from reported size for %s: reported=%d decoded=%d",
            sub.name,
            sub.size,
            len(raw),
        )
    return DecodedFile(name=sub.name, content_type=sub.content_type, raw_bytes=raw)
