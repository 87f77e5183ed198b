"""Unit tests for GCS persistence - storage client is mocked."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

import pytest
from upload_helpers import uploaded_paths

from upload_service.errors import StorageWriteError
from upload_service.pipeline.storage import GcsPersister, safe_object_name, unique_object_path


class TestObjectPaths:
    def test_path_shape(self):
        path = unique_object_path("uploads/", "photo.png")
        assert re.fullmatch(r"uploads/\d{13,}-\d{6,}-photo\.png", path)

    def test_same_name_never_collides(self):
        paths = {unique_object_path("uploads/", "same.pdf") for _ in range(500)}
        assert len(paths) == 500

    def test_directory_components_dropped(self):
        assert safe_object_name("../../etc/passwd") == "passwd"
        assert safe_object_name("C:\\Users\\me\\scan.pdf") == "scan.pdf"

    def test_blank_name_gets_placeholder(self):
        assert safe_object_name("dir/") == "file"


class TestGcsPersister:
    async def test_persist_uploads_bytes(self, persister: GcsPersister, storage_client: MagicMock):
        loc = await persister.persist(b"data", "a.png", content_type="image/png")

        storage_client.bucket.assert_called_with("test-bucket")
        blob = storage_client.bucket.return_value.blob.return_value
        blob.upload_from_string.assert_called_once_with(b"data", content_type="image/png")
        assert loc.bucket == "test-bucket"
        assert loc.path.startswith("uploads/")
        assert loc.path.endswith("-a.png")
        assert loc.uri == f"gs://test-bucket/{loc.path}"

    async def test_missing_content_type_defaults_to_octet_stream(
        self, persister: GcsPersister, storage_client: MagicMock
    ):
        await persister.persist(b"data", "blob.bin")
        blob = storage_client.bucket.return_value.blob.return_value
        assert blob.upload_from_string.call_args.kwargs["content_type"] == "application/octet-stream"

    async def test_identical_names_get_distinct_paths(
        self, persister: GcsPersister, storage_client: MagicMock
    ):
        first = await persister.persist(b"1", "dup.txt")
        second = await persister.persist(b"2", "dup.txt")

        assert first.path != second.path
        assert uploaded_paths(storage_client) == [first.path, second.path]

    async def test_client_failure_wrapped(self, persister: GcsPersister, storage_client: MagicMock):
        blob = storage_client.bucket.return_value.blob.return_value
        blob.upload_from_string.side_effect = RuntimeError("403 Forbidden")

        with pytest.raises(StorageWriteError, match="403 Forbidden") as exc_info:
            await persister.persist(b"x", "a.png")
        assert exc_info.value.file_name == "a.png"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_check_reports_bucket_existence(self, persister: GcsPersister, storage_client: MagicMock):
        storage_client.bucket.return_value.exists.return_value = True
        assert await persister.check() is True

        storage_client.bucket.return_value.exists.side_effect = RuntimeError("network down")
        assert await persister.check() is False
