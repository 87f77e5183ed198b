"""Shared test fixtures for the upload service test suite."""

from __future__ import annotations

import pytest


@pytest.fixture
def test_bucket() -> str:
    return "test-bucket"


@pytest.fixture
def upload_prefix() -> str:
    return "uploads/"
