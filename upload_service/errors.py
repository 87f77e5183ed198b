"""Error taxonomy for the upload pipeline."""

from __future__ import annotations


class UploadError(Exception):
    """Base exception for all upload pipeline errors."""

    def __init__(self, message: str, *, file_name: str | None = None) -> None:
        super().__init__(message)
        self.file_name = file_name


class InvalidBatchError(UploadError):
    """Raised when the batch is missing, empty, or not a sequence."""


class MalformedPayloadError(UploadError):
    """Raised when a file's base64 payload cannot be decoded."""


class StorageWriteError(UploadError):
    """Raised when writing a file to durable storage fails."""


class DocumentDecodeError(UploadError):
    """Raised when document bytes cannot be parsed (bad input file)."""


class AnalysisError(UploadError):
    """Raised when the analysis model call fails or returns no usable text."""


def upload_failed_message(exc: BaseException | str) -> str:
    """Caller-facing message for a batch that failed as a whole."""
    return f"Upload failed: {exc}"
