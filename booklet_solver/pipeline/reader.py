"""PDF opening and page counting using pdfplumber."""

import logging
from pathlib import Path
from typing import Optional

import pdfplumber

from ..models.document import SourceDocument

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 50
PDF_MAGIC = b"%PDF"


class DocumentParseError(Exception):
    """Raised when a document cannot be opened, counted or rendered."""
    pass


def open_document(filepath: str, max_file_size_mb: Optional[float] = MAX_FILE_SIZE_MB) -> SourceDocument:
    """Validate an uploaded file and wrap it in a SourceDocument.

    Args:
        filepath: Path to PDF file
        max_file_size_mb: Upper size limit in megabytes (None disables the check)

    Returns:
        SourceDocument for the file

    Raises:
        DocumentParseError: If the file is missing, not a PDF, or too large
    """
    path = Path(filepath)
    if not path.is_file():
        raise DocumentParseError(f"PDF file not found: {filepath}")
    if path.suffix.lower() != ".pdf":
        raise DocumentParseError(f"Unsupported file type '{path.suffix}': only PDF files are accepted")

    size = path.stat().st_size
    if max_file_size_mb is not None and size > max_file_size_mb * 1024 * 1024:
        raise DocumentParseError(
            f"{path.name} is {size / (1024 * 1024):.1f} MB, larger than the {max_file_size_mb} MB limit"
        )

    with open(path, "rb") as f:
        header = f.read(1024)
    if PDF_MAGIC not in header:
        raise DocumentParseError(f"{path.name} does not look like a PDF (missing %PDF header)")

    return SourceDocument(filename=path.name, filepath=str(path), size_bytes=size)


def get_page_count(document: SourceDocument) -> int:
    """Return the number of pages in a document.

    Raises:
        DocumentParseError: If the PDF is corrupt or has no pages
    """
    try:
        with pdfplumber.open(document.filepath) as pdf:
            page_count = len(pdf.pages)
    except FileNotFoundError as e:
        raise DocumentParseError(f"PDF file not found: {document.filepath}") from e
    except Exception as e:
        raise DocumentParseError(f"Failed to read PDF {document.filename}: {e}") from e

    if page_count < 1:
        raise DocumentParseError(f"{document.filename} contains no pages")

    logger.debug("%s has %d pages", document.filename, page_count)
    return page_count
