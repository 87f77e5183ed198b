"""Pydantic request/response schemas for the upload service API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from upload_service.pipeline.types import BatchResponse, FailurePolicy

# -- Upload -------------------------------------------------------------------


class FileIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=1024, description="Original file name")
    type: str = Field("", max_length=255, description="Declared MIME type")
    size: int | None = Field(None, ge=0, description="Reported byte size (informational)")
    base64: str = Field(..., description="Base64-encoded file content")


class UploadRequest(BaseModel):
    # Documents the body only; /v1/upload parses the raw JSON with parse_batch
    # so every malformed batch surfaces as InvalidBatchError.
    files: list[FileIn]


class FileOut(BaseModel):
    name: str
    path: str | None = None
    type: str
    analysis: str
    status: str | None = None  # best_effort only
    error: str | None = None


class UploadResponse(BaseModel):
    success: bool
    files: list[FileOut]

    @classmethod
    def from_batch(cls, batch: BatchResponse, *, policy: FailurePolicy) -> UploadResponse:
        per_file = policy is FailurePolicy.BEST_EFFORT
        return cls(
            success=batch.success,
            files=[
                FileOut(
                    name=r.name,
                    path=r.path,
                    type=r.content_type,
                    analysis=r.analysis,
                    status=r.status if per_file else None,
                    error=r.error if per_file else None,
                )
                for r in batch.files
            ],
        )


# -- Health -------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    error: str | None = None
