from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ContentKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    UNRECOGNIZED = "unrecognized"


class FailurePolicy(str, Enum):
    FAIL_FAST = "fail_fast"  # first per-file error fails the whole batch
    BEST_EFFORT = "best_effort"  # every file gets a result with its own status


@dataclass(frozen=True)
class FileSubmission:
    name: str
    content_type: str  # declared MIME type
    size: int | None  # informational only
    encoded_bytes: str  # base64


@dataclass(frozen=True)
class DecodedFile:
    name: str
    content_type: str
    raw_bytes: bytes


@dataclass(frozen=True)
class StoredLocation:
    bucket: str
    path: str  # object name in bucket

    @property
    def uri(self) -> str:
        return f"gs://{self.bucket}/{self.path}"


@dataclass(frozen=True)
class FileResult:
    name: str
    path: str | None  # None only when a best-effort file failed before persisting
    content_type: str
    analysis: str
    status: str = "completed"  # completed|failed
    error: str | None = None


@dataclass(frozen=True)
class BatchResponse:
    success: bool
    files: list[FileResult]
