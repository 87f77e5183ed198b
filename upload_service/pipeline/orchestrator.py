from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from upload_service.analysis.document import DocumentAnalyzer
from upload_service.analysis.image import ImageAnalyzer
from upload_service.analysis.model import AnalysisModel
from upload_service.config import UploadConfig
from upload_service.errors import InvalidBatchError, UploadError
from upload_service.pipeline.codec import decode_submission
from upload_service.pipeline.dispatch import classify
from upload_service.pipeline.storage import GcsPersister
from upload_service.pipeline.types import (
    BatchResponse,
    ContentKind,
    FailurePolicy,
    FileResult,
    FileSubmission,
    StoredLocation,
)

logger = logging.getLogger(__name__)


def parse_batch(payload: Any) -> list[FileSubmission]:
    """Build submissions from a wire payload ``{"files": [{name, type, size, base64}]}``.

    Raises:
        InvalidBatchError: If ``files`` is missing, not a list, empty, or an
            entry lacks a name or base64 payload.
    """
    if not isinstance(payload, Mapping):
        raise InvalidBatchError("Invalid files data: request body must be an object")
    files = payload.get("files")
    if not isinstance(files, list) or not files:
        raise InvalidBatchError("Invalid files data: 'files' must be a non-empty list")

    out: list[FileSubmission] = []
    for i, f in enumerate(files):
        if not isinstance(f, Mapping):
            raise InvalidBatchError(f"Invalid files data: entry {i} is not an object")
        name = f.get("name")
        encoded = f.get("base64")
        if not isinstance(name, str) or not name:
            raise InvalidBatchError(f"Invalid files data: entry {i} has no name")
        if not isinstance(encoded, str):
            raise InvalidBatchError(f"Invalid files data: entry {i} ({name}) has no base64 payload")
        size = f.get("size")
        out.append(
            FileSubmission(
                name=name,
                content_type=str(f.get("type") or ""),
                size=int(size) if isinstance(size, int | float) else None,
                encoded_bytes=encoded,
            )
        )
    return out


def validate_batch(batch: Any) -> list[FileSubmission]:
    if batch is None:
        raise InvalidBatchError("Invalid files data: batch is missing")
    if isinstance(batch, str | bytes | bytearray) or not isinstance(batch, Sequence):
        raise InvalidBatchError(f"Invalid files data: expected a sequence, got {type(batch).__name__}")
    if len(batch) == 0:
        raise InvalidBatchError("Invalid files data: batch is empty")
    for i, sub in enumerate(batch):
        if not isinstance(sub, FileSubmission):
            raise InvalidBatchError(f"Invalid files data: entry {i} is not a file submission")
        if not sub.name:
            raise InvalidBatchError(f"Invalid files data: entry {i} has an empty name")
    return list(batch)


class BatchOrchestrator:
    def __init__(
        self,
        *,
        persister: GcsPersister,
        image_analyzer: ImageAnalyzer,
        document_analyzer: DocumentAnalyzer,
        policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        max_concurrency: int = 0,
    ) -> None:
        self._persister = persister
        self._image = image_analyzer
        self._document = document_analyzer
        self._policy = policy
        self._max_concurrency = max(0, int(max_concurrency))

    @classmethod
    def from_config(
        cls, cfg: UploadConfig, *, persister: GcsPersister, model: AnalysisModel
    ) -> BatchOrchestrator:
        return cls(
            persister=persister,
            image_analyzer=ImageAnalyzer(model=model),
            document_analyzer=DocumentAnalyzer(
                model=model,
                max_chars=cfg.doc_max_chars,
                truncation_marker=cfg.truncation_marker,
            ),
            policy=FailurePolicy(cfg.failure_policy),
            max_concurrency=cfg.max_concurrency,
        )

    @property
    def policy(self) -> FailurePolicy:
        return self._policy

    async def process(
        self, batch: Sequence[FileSubmission], *, policy: FailurePolicy | None = None
    ) -> BatchResponse:
        files = validate_batch(batch)
        policy = policy or self._policy
        total = len(files)
        logger.info("Processing batch of %d files (policy=%s)", total, policy.value)

        sem = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        async def worker(index: int, sub: FileSubmission) -> FileResult:
            async with sem if sem is not None else contextlib.nullcontext():
                if policy is FailurePolicy.BEST_EFFORT:
                    return await self._process_file_best_effort(index, total, sub)
                return await self._process_file(index, total, sub)

        # Each task returns its own result; gather preserves input order.
        tasks = [asyncio.create_task(worker(i, sub)) for i, sub in enumerate(files)]
        try:
            results = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        except Exception:
            # Sibling files still run to completion; only the first error surfaces.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        success = all(r.status == "completed" for r in results)
        logger.info(
            "Batch finished: %d/%d completed",
            sum(1 for r in results if r.status == "completed"),
            total,
        )
        return BatchResponse(success=success, files=list(results))

    async def _process_file(self, index: int, total: int, sub: FileSubmission) -> FileResult:
        logger.info("Processing file %d/%d: %s (%s)", index + 1, total, sub.name, sub.content_type)
        try:
            stored, analysis = await self._run_pipeline(sub)
        except UploadError as e:
            if e.file_name is None:
                e.file_name = sub.name
            logger.error("Error processing file %s: %s", sub.name, e)
            raise
        return FileResult(
            name=sub.name,
            path=stored.path,
            content_type=sub.content_type,
            analysis=analysis,
        )

    async def _process_file_best_effort(self, index: int, total: int, sub: FileSubmission) -> FileResult:
        logger.info("Processing file %d/%d: %s (%s)", index + 1, total, sub.name, sub.content_type)
        stored: list[StoredLocation] = []
        try:
            _, analysis = await self._run_pipeline(sub, stored=stored)
        except Exception as e:
            if isinstance(e, UploadError):
                logger.error("Error processing file %s: %s", sub.name, e)
                message = str(e)
            else:
                logger.exception("Unexpected error processing file %s", sub.name)
                message = f"{type(e).__name__}: {e}"
            return FileResult(
                name=sub.name,
                path=stored[0].path if stored else None,
                content_type=sub.content_type,
                analysis="",
                status="failed",
                error=message,
            )
        return FileResult(
            name=sub.name,
            path=stored[0].path,
            content_type=sub.content_type,
            analysis=analysis,
        )

    async def _run_pipeline(
        self, sub: FileSubmission, *, stored: list[StoredLocation] | None = None
    ) -> tuple[StoredLocation, str]:
        decoded = decode_submission(sub)
        logger.debug("File %s converted to buffer, size: %d", sub.name, len(decoded.raw_bytes))

        location = await self._persister.persist(
            decoded.raw_bytes, decoded.name, content_type=decoded.content_type or None
        )
        if stored is not None:
            stored.append(location)
        logger.info("File %s uploaded successfully to %s", sub.name, location.uri)

        kind = classify(decoded.content_type)
        analysis = ""
        if kind is ContentKind.IMAGE:
            analysis = await self._image.analyze(decoded.raw_bytes, decoded.content_type)
        elif kind is ContentKind.DOCUMENT:
            analysis = await self._document.analyze(decoded.raw_bytes)
        else:
            logger.info("No analyzer for %s (%s); stored without analysis", sub.name, decoded.content_type)
        return location, analysis
