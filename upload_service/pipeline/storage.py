from __future__ import annotations

import asyncio
import itertools
import logging
import time

from google.cloud import storage

from upload_service.errors import StorageWriteError
from upload_service.pipeline.types import StoredLocation

logger = logging.getLogger(__name__)

# Process-wide; itertools.count is atomic under the GIL.
_SEQUENCE = itertools.count(1)


def gs_uri(bucket: str, name: str) -> str:
    return f"gs://{bucket}/{name}"


def upload_bytes(
    client: storage.Client,
    bucket: str,
    name: str,
    data: bytes,
    *,
    content_type: str | None = None,
) -> None:
    b = client.bucket(bucket)
    blob = b.blob(name)
    blob.upload_from_string(data, content_type=content_type or "application/octet-stream")


def safe_object_name(name: str) -> str:
    """Basename of a client-supplied file name, safe to embed in an object path."""
    base = name.replace("\\", "/").split("/")[-1].strip()
    return base or "file"


def unique_object_path(prefix: str, name: str) -> str:
    """``{prefix}{epoch_millis}-{seq}-{name}``; unique for the process lifetime."""
    millis = time.time_ns() // 1_000_000
    seq = next(_SEQUENCE)
    return f"{prefix}{millis}-{seq:06d}-{safe_object_name(name)}"


class GcsPersister:
    def __init__(self, *, client: storage.Client, bucket: str, prefix: str = "uploads/") -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = prefix

    @property
    def bucket(self) -> str:
        return self._bucket

    async def persist(
        self, raw_bytes: bytes, suggested_name: str, *, content_type: str | None = None
    ) -> StoredLocation:
        path = unique_object_path(self._prefix, suggested_name)
        logger.info("Uploading %s (%d bytes) to %s", suggested_name, len(raw_bytes), gs_uri(self._bucket, path))
        try:
            # Blocking GCS I/O -> run in thread to not block event loop
            await asyncio.to_thread(
                upload_bytes,
                self._client,
                self._bucket,
                path,
                raw_bytes,
                content_type=content_type,
            )
        except Exception as e:
            raise StorageWriteError(
                f"Failed to store {suggested_name} at {path}: {e}", file_name=suggested_name
            ) from e
        return StoredLocation(bucket=self._bucket, path=path)

    async def check(self) -> bool:
        """Readiness probe: the configured bucket is reachable."""
        try:
            return bool(await asyncio.to_thread(self._client.bucket(self._bucket).exists))
        except Exception:
            logger.warning("Storage health check failed", exc_info=True)
            return False
