"""Environment-variable-driven configuration for the upload service.

All config comes from env vars. HTTP, CORS and GCP settings are module-level
constants read once at import time; pipeline settings are read by
``UploadConfig.from_env`` and share the ``DEFAULT_*`` values below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


# -- Defaults -----------------------------------------------------------------
DEFAULT_PATH_PREFIX = "uploads/"
DEFAULT_ANALYSIS_MODEL = "gemini-1.5-flash-8b"
DEFAULT_DOC_MAX_CHARS = 30_000
DEFAULT_TRUNCATION_MARKER = "...(truncated)"
DEFAULT_FAILURE_POLICY = "fail_fast"

# -- HTTP ---------------------------------------------------------------------
UPLOAD_MAX_BODY_BYTES: int = _env_int("UPLOAD_MAX_BODY_BYTES", 32 * 1024 * 1024)
UPLOAD_RATE_LIMIT: str = os.getenv("UPLOAD_RATE_LIMIT", "20/minute")

# -- GCP ----------------------------------------------------------------------
VERTEX_PROJECT: str | None = os.getenv("GOOGLE_CLOUD_PROJECT")
VERTEX_LOCATION: str = os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1")

# -- CORS ---------------------------------------------------------------------
UPLOAD_CORS_ALLOW_ORIGINS: list[str] = _env_csv(
    "UPLOAD_CORS_ALLOW_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
)
UPLOAD_CORS_ALLOW_METHODS: list[str] = _env_csv(
    "UPLOAD_CORS_ALLOW_METHODS",
    "GET,POST,OPTIONS",
)
UPLOAD_CORS_ALLOW_HEADERS: list[str] = _env_csv(
    "UPLOAD_CORS_ALLOW_HEADERS",
    "Authorization,Content-Type",
)
UPLOAD_CORS_ALLOW_CREDENTIALS: bool = _env_bool("UPLOAD_CORS_ALLOW_CREDENTIALS", False)

_POLICIES = ("fail_fast", "best_effort")


@dataclass(frozen=True)
class UploadConfig:
    # GCS
    bucket: str
    path_prefix: str  # e.g. "uploads/"

    # Analysis
    analysis_model: str
    doc_max_chars: int
    truncation_marker: str

    # Orchestration
    failure_policy: str  # fail_fast|best_effort
    max_concurrency: int
    batch_timeout_seconds: float

    @classmethod
    def from_env(cls) -> UploadConfig:
        bucket = os.getenv("UPLOAD_BUCKET")
        if not bucket:
            raise ValueError("UPLOAD_BUCKET is required")

        prefix = os.getenv("UPLOAD_PATH_PREFIX", DEFAULT_PATH_PREFIX)
        if prefix and not prefix.endswith("/"):
            prefix += "/"

        return cls(
            bucket=bucket,
            path_prefix=prefix,
            analysis_model=os.getenv("UPLOAD_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
            doc_max_chars=_env_int("UPLOAD_DOC_MAX_CHARS", DEFAULT_DOC_MAX_CHARS),
            truncation_marker=os.getenv("UPLOAD_TRUNCATION_MARKER", DEFAULT_TRUNCATION_MARKER),
            failure_policy=os.getenv("UPLOAD_FAILURE_POLICY", DEFAULT_FAILURE_POLICY).strip().lower(),
            max_concurrency=_env_int("UPLOAD_MAX_CONCURRENCY", 0),
            batch_timeout_seconds=_env_float("UPLOAD_BATCH_TIMEOUT_SECONDS", 0.0),
        )

    def validate(self) -> None:
        if self.doc_max_chars < 1:
            raise ValueError("UPLOAD_DOC_MAX_CHARS must be >= 1")
        if self.failure_policy not in _POLICIES:
            raise ValueError(
                f"UPLOAD_FAILURE_POLICY must be one of {', '.join(_POLICIES)}, got {self.failure_policy!r}"
            )
        if self.max_concurrency < 0:
            raise ValueError("UPLOAD_MAX_CONCURRENCY must be >= 0")
        if self.batch_timeout_seconds < 0:
            raise ValueError("UPLOAD_BATCH_TIMEOUT_SECONDS must be >= 0")
