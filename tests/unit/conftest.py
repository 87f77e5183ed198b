"""Unit test conftest - no GCS or Gemini access required."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from upload_service.analysis.document import DocumentAnalyzer
from upload_service.analysis.image import ImageAnalyzer
from upload_service.analysis.model import AnalysisModel
from upload_service.pipeline.orchestrator import BatchOrchestrator
from upload_service.pipeline.storage import GcsPersister


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with 3 lines via fpdf2."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(text="Line one of the PDF document.")
    pdf.ln()
    pdf.cell(text="Line two with additional content.")
    pdf.ln()
    pdf.cell(text="Line three concludes the page.")
    return bytes(pdf.output())


@pytest.fixture
def multi_page_pdf_bytes() -> bytes:
    """Generate a 3-page PDF."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.set_font("Helvetica", size=12)
    for i in range(1, 4):
        pdf.add_page()
        pdf.cell(text=f"Content on page {i}.")
    return bytes(pdf.output())


@pytest.fixture
def empty_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with no text content."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    return bytes(pdf.output())


@pytest.fixture
def storage_client() -> MagicMock:
    """google.cloud.storage.Client stand-in; uploads succeed by default."""
    return MagicMock()


@pytest.fixture
def persister(storage_client: MagicMock, test_bucket: str, upload_prefix: str) -> GcsPersister:
    return GcsPersister(client=storage_client, bucket=test_bucket, prefix=upload_prefix)


@pytest.fixture
def model() -> MagicMock:
    m = MagicMock(spec=AnalysisModel)
    m.generate = AsyncMock(return_value="generated analysis")
    m.check = AsyncMock(return_value=True)
    return m


@pytest.fixture
def orchestrator(persister: GcsPersister, model: MagicMock) -> BatchOrchestrator:
    return BatchOrchestrator(
        persister=persister,
        image_analyzer=ImageAnalyzer(model=model),
        document_analyzer=DocumentAnalyzer(model=model),
    )
