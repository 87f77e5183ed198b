from __future__ import annotations

import pytest

from upload_service.pipeline.dispatch import classify, normalize_mime
from upload_service.pipeline.types import ContentKind


class TestClassify:
    @pytest.mark.parametrize("mime", ["image/png", "image/jpeg", "image/webp", "image/svg+xml"])
    def test_images(self, mime: str):
        assert classify(mime) is ContentKind.IMAGE

    def test_pdf(self):
        assert classify("application/pdf") is ContentKind.DOCUMENT

    def test_case_and_parameters_ignored(self):
        assert classify("Application/PDF; name=report.pdf") is ContentKind.DOCUMENT
        assert classify("IMAGE/PNG") is ContentKind.IMAGE

    @pytest.mark.parametrize(
        "mime",
        ["text/plain", "application/x-pdf", "application/pdfx", "video/mp4", "", None, "imagepng"],
    )
    def test_everything_else_unrecognized(self, mime: str | None):
        assert classify(mime) is ContentKind.UNRECOGNIZED


class TestNormalizeMime:
    def test_strips_params_and_whitespace(self):
        assert normalize_mime("  Text/HTML ; charset=utf-8") == "text/html"

    def test_none_is_empty(self):
        assert normalize_mime(None) == ""
