"""PDF page rasterization for per-page solving.

Pages are rendered at a scale factor relative to the PDF's 72 dpi point
space; 2.0 is the baseline for legible question text.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

try:
    import fitz  # pymupdf
except ImportError:
    fitz = None

from ..models.document import SourceDocument
from .reader import DocumentParseError, get_page_count as _count_pages

logger = logging.getLogger(__name__)

DEFAULT_SCALE_FACTOR = 2.0


class PDFRenderError(DocumentParseError):
    """Raised when PDF rendering fails."""
    pass


@dataclass
class PageImage:
    """A rendered page as PNG bytes."""
    page_number: int
    width: int
    height: int
    png_bytes: bytes

    def save(self, output_dir: str, stem: str = "page") -> str:
        """Write the PNG as {stem}_page_{n}.png and return its path."""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        image_path = output_path / f"{stem}_page_{self.page_number}.png"
        image_path.write_bytes(self.png_bytes)
        return str(image_path)


def render_page(
    document: SourceDocument,
    page_number: int,
    scale_factor: float = DEFAULT_SCALE_FACTOR,
) -> PageImage:
    """Rasterize one page of a document to PNG.

    Args:
        document: Document to render from
        page_number: 1-indexed page to render
        scale_factor: Output scale relative to the page's point size

    Returns:
        PageImage with PNG bytes and pixel dimensions

    Raises:
        ValueError: If page_number is out of range or scale_factor is not positive
        PDFRenderError: If rendering fails (corrupt page)
        ImportError: If pymupdf (fitz) is not installed
    """
    if fitz is None:
        raise ImportError(
            "pymupdf (fitz) is required for PDF rendering. "
            "Install with: pip install pymupdf"
        )
    if scale_factor <= 0:
        raise ValueError(f"scale_factor must be positive, got {scale_factor}")

    try:
        pdf_doc = fitz.open(document.filepath)
    except Exception as e:
        raise PDFRenderError(f"Failed to open {document.filename}: {e}") from e

    try:
        page_count = pdf_doc.page_count
        if not 1 <= page_number <= page_count:
            raise ValueError(
                f"Page {page_number} out of range for {document.filename} (1..{page_count})"
            )
        try:
            # page_number is 1-indexed, fitz uses 0-indexed
            fitz_page = pdf_doc[page_number - 1]
            mat = fitz.Matrix(scale_factor, scale_factor)
            pix = fitz_page.get_pixmap(matrix=mat)
            image = PageImage(
                page_number=page_number,
                width=pix.width,
                height=pix.height,
                png_bytes=pix.tobytes("png"),
            )
            pix = None
        except Exception as e:
            raise PDFRenderError(
                f"Failed to render page {page_number} from {document.filename}: {e}"
            ) from e
    finally:
        pdf_doc.close()

    logger.debug(
        "Rendered page %d of %s at %.1fx (%dx%d px)",
        page_number, document.filename, scale_factor, image.width, image.height,
    )
    return image


class PdfPageExtractor:
    """Page extractor backed by pdfplumber (counting) and pymupdf (rendering)."""

    def get_page_count(self, document: SourceDocument) -> int:
        return _count_pages(document)

    def render_page(
        self,
        document: SourceDocument,
        page_number: int,
        scale_factor: float = DEFAULT_SCALE_FACTOR,
    ) -> PageImage:
        return render_page(document, page_number, scale_factor)
