"""FastAPI entry point for the upload service.

Endpoints:
- POST /v1/upload - Persist a batch of files and analyze each one
- GET  /liveness  - Health check
- GET  /readiness - Storage bucket + analysis model check
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from google.cloud import storage
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from upload_service.analysis.model import AnalysisModel, build_genai_client
from upload_service.config import (
    UPLOAD_CORS_ALLOW_CREDENTIALS,
    UPLOAD_CORS_ALLOW_HEADERS,
    UPLOAD_CORS_ALLOW_METHODS,
    UPLOAD_CORS_ALLOW_ORIGINS,
    UPLOAD_MAX_BODY_BYTES,
    UPLOAD_RATE_LIMIT,
    UploadConfig,
)
from upload_service.errors import (
    AnalysisError,
    DocumentDecodeError,
    InvalidBatchError,
    MalformedPayloadError,
    StorageWriteError,
    UploadError,
    upload_failed_message,
)
from upload_service.logging_config import generate_request_id, set_request_id, setup_logging
from upload_service.models import HealthResponse, UploadRequest, UploadResponse
from upload_service.pipeline.orchestrator import BatchOrchestrator, parse_batch
from upload_service.pipeline.storage import GcsPersister
from upload_service.pipeline.types import FailurePolicy, FileSubmission

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the long-lived storage and model clients once per process."""
    setup_logging()
    cfg = UploadConfig.from_env()
    cfg.validate()

    persister = GcsPersister(client=storage.Client(), bucket=cfg.bucket, prefix=cfg.path_prefix)
    model = AnalysisModel(client=build_genai_client(), model=cfg.analysis_model)

    app.state.config = cfg
    app.state.persister = persister
    app.state.model = model
    app.state.orchestrator = BatchOrchestrator.from_config(cfg, persister=persister, model=model)
    logger.info("Upload service started (bucket=%s, model=%s)", cfg.bucket, cfg.analysis_model)
    yield
    logger.info("Upload service stopped")


app = FastAPI(
    title="Upload Analysis API",
    version="0.1.0",
    lifespan=lifespan,
)

# -- Rate limiting ------------------------------------------------------------

limiter = Limiter(key_func=get_remote_address, default_limits=["60/minute"])
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


if UPLOAD_CORS_ALLOW_CREDENTIALS and "*" in UPLOAD_CORS_ALLOW_ORIGINS:
    raise RuntimeError("Invalid CORS config: wildcard origin cannot be combined with credentials=true")

app.add_middleware(
    CORSMiddleware,
    allow_origins=UPLOAD_CORS_ALLOW_ORIGINS,
    allow_credentials=UPLOAD_CORS_ALLOW_CREDENTIALS,
    allow_methods=UPLOAD_CORS_ALLOW_METHODS,
    allow_headers=UPLOAD_CORS_ALLOW_HEADERS,
)


# -- Error mapping ------------------------------------------------------------

# Bad input files are the caller's problem; storage/model failures are upstream.
_STATUS_BY_ERROR: list[tuple[type[UploadError], int]] = [
    (InvalidBatchError, 400),
    (MalformedPayloadError, 422),
    (DocumentDecodeError, 422),
    (StorageWriteError, 502),
    (AnalysisError, 502),
]


def status_for_error(exc: UploadError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


@app.exception_handler(UploadError)
async def _upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    status = status_for_error(exc)
    if isinstance(exc, InvalidBatchError):
        detail = str(exc)
    else:
        detail = upload_failed_message(exc)
    return JSONResponse(
        status_code=status,
        content={"detail": detail, "error": type(exc).__name__},
    )


# -- Body size limit ----------------------------------------------------------


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with bodies exceeding the size limit."""
    content_length = request.headers.get("content-length")
    if content_length is not None and int(content_length) > UPLOAD_MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large"})
    return await call_next(request)


# -- Request ID middleware ----------------------------------------------------


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Attach a unique request ID for trace correlation."""
    request_id = request.headers.get("x-request-id") or generate_request_id()
    request.state.request_id = request_id
    set_request_id(request_id)
    response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


def _get_orchestrator(request: Request) -> BatchOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return cast(BatchOrchestrator, orchestrator)


async def _read_batch(request: Request) -> list[FileSubmission]:
    try:
        payload = await request.json()
    except ValueError as e:
        raise InvalidBatchError("Invalid files data: request body is not valid JSON") from e
    return parse_batch(payload)


def _batch_timeout(request: Request) -> float:
    cfg = getattr(request.app.state, "config", None)
    return float(cfg.batch_timeout_seconds) if cfg is not None else 0.0


# -- Health -------------------------------------------------------------------


@app.get("/liveness", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/readiness", response_model=HealthResponse)
async def readiness(request: Request) -> HealthResponse:
    persister = getattr(request.app.state, "persister", None)
    model = getattr(request.app.state, "model", None)
    if persister is None or model is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    storage_ok = await persister.check()
    if not storage_ok:
        raise HTTPException(status_code=503, detail="Storage unavailable")
    model_ok = await model.check()
    if not model_ok:
        return HealthResponse(status="degraded", error="Analysis model unavailable")
    return HealthResponse(status="ok")


# -- Upload -------------------------------------------------------------------


@app.post(
    "/v1/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": UploadRequest.model_json_schema()}},
            "required": True,
        }
    },
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_files(
    request: Request,
    policy: FailurePolicy | None = None,
) -> UploadResponse:
    """Decode -> store -> analyze every file in the batch."""
    orchestrator = _get_orchestrator(request)
    effective = policy or orchestrator.policy
    try:
        submissions = await _read_batch(request)
    except InvalidBatchError as e:
        logger.warning("Rejected upload request: %s", e)
        raise
    logger.info("Upload request: filesCount=%d policy=%s", len(submissions), effective.value)

    timeout = _batch_timeout(request)
    try:
        if timeout > 0:
            batch = await asyncio.wait_for(
                orchestrator.process(submissions, policy=effective), timeout=timeout
            )
        else:
            batch = await orchestrator.process(submissions, policy=effective)
    except TimeoutError as e:
        logger.error("Upload batch timed out after %.1fs", timeout)
        raise HTTPException(
            status_code=504, detail=upload_failed_message(f"timed out after {timeout:g}s")
        ) from e
    except InvalidBatchError as e:
        logger.warning("Rejected upload request: %s", e)
        raise
    except UploadError:
        logger.exception("Upload function error")
        raise
    except Exception as e:
        logger.exception("Upload function error")
        raise HTTPException(status_code=500, detail=upload_failed_message(e)) from e

    return UploadResponse.from_batch(batch, policy=effective)
