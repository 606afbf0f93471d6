"""Unit tests for PDF page rasterization."""

from pathlib import Path
from unittest.mock import patch

import pytest

from booklet_solver.models.document import SourceDocument
from booklet_solver.pipeline.pdf_renderer import (
    PDFRenderError,
    PdfPageExtractor,
    render_page,
)
from booklet_solver.pipeline.reader import DocumentParseError


def _make_pdf(path: Path, pages: int = 2) -> None:
    """Create a small PDF that pymupdf can render."""
    import fitz
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=200, height=300)
        page.insert_text((20, 40), f"Question {i + 1}: 2 + 2 = ?")
    doc.save(str(path))
    doc.close()


@pytest.fixture
def document(tmp_path):
    p = tmp_path / "booklet.pdf"
    _make_pdf(p)
    return SourceDocument(filename="booklet.pdf", filepath=str(p), size_bytes=p.stat().st_size)


def test_render_page_returns_png(document):
    image = render_page(document, 1, scale_factor=1.0)

    assert image.page_number == 1
    assert image.png_bytes[:4] == b"\x89PNG"


def test_scale_factor_controls_resolution(document):
    """Pixel size equals point size times the scale factor."""
    image = render_page(document, 2, scale_factor=2.0)

    assert image.width == 400
    assert image.height == 600


def test_page_out_of_range(document):
    with pytest.raises(ValueError, match="out of range"):
        render_page(document, 3)
    with pytest.raises(ValueError, match="out of range"):
        render_page(document, 0)


def test_invalid_scale(document):
    with pytest.raises(ValueError, match="scale_factor"):
        render_page(document, 1, scale_factor=0)


def test_unreadable_document(tmp_path):
    p = tmp_path / "broken.pdf"
    p.write_bytes(b"not a pdf at all")
    doc = SourceDocument(filename="broken.pdf", filepath=str(p))

    with pytest.raises(PDFRenderError):
        render_page(doc, 1)


def test_render_error_is_parse_error():
    assert issubclass(PDFRenderError, DocumentParseError)


def test_page_image_save(document, tmp_path):
    image = render_page(document, 1, scale_factor=1.0)

    path = image.save(str(tmp_path / "images"), stem="booklet")

    assert Path(path).name == "booklet_page_1.png"
    assert Path(path).read_bytes() == image.png_bytes


def test_extractor_uses_both_backends(document):
    extractor = PdfPageExtractor()

    assert extractor.get_page_count(document) == 2
    assert extractor.render_page(document, 1, 1.0).width == 200


@patch("booklet_solver.pipeline.pdf_renderer.fitz", None)
def test_render_page_missing_dependencies(document):
    """If pymupdf is missing, ImportError is raised."""
    with pytest.raises(ImportError, match="pymupdf.*required"):
        render_page(document, 1)
