"""Answer key export to markdown and paginated PDF."""

import logging
import math
from pathlib import Path
from typing import List, Optional, Tuple

try:
    import fitz  # pymupdf
except ImportError:
    fitz = None

logger = logging.getLogger(__name__)

# Page sizes in points (72 points = 1 inch)
PAGE_SIZES = {
    'A4': (595, 842),
    'A3': (842, 1191),
    'A5': (420, 595),
    'Letter': (612, 792),
    'Legal': (612, 1008),
}

MARGIN = 50
FONT_NAME = "helv"
EMBEDDED_FONT_NAME = "answerfont"
FONT_SIZE = 11
LINE_HEIGHT = 1.4


class ExportError(Exception):
    """Raised when an answer key cannot be written."""
    pass


def get_page_size(size: str = 'A4', orientation: str = 'portrait') -> Tuple[int, int]:
    """Return (width, height) in points; unknown sizes fall back to A4."""
    width, height = PAGE_SIZES.get(size, PAGE_SIZES['A4'])
    if orientation == 'landscape':
        return (height, width)
    return (width, height)


def format_bytes(num_bytes: int) -> str:
    """Format bytes as a human readable size (e.g. '1.5 MB')."""
    if num_bytes <= 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(units) - 1)
    return f"{round(num_bytes / (1024 ** i), 2):g} {units[i]}"


def write_markdown(text: str, path: str) -> str:
    """Write the answer key as UTF-8 markdown and return the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
    return str(out)


def _load_font(fontfile: Optional[str] = None):
    """Built-in Helvetica, or a TrueType/OpenType file for non-Latin scripts."""
    if fontfile is None:
        return fitz.Font(FONT_NAME)
    if not Path(fontfile).is_file():
        raise ExportError(f"Font file not found: {fontfile}")
    try:
        return fitz.Font(fontfile=str(fontfile))
    except RuntimeError as e:
        raise ExportError(f"Cannot load font {fontfile}: {e}") from e


def wrap_lines(text: str, max_width: float, font=None) -> List[str]:
    """Wrap text to a maximum rendered width in points, keeping blank lines."""
    font = font or _load_font()

    def width(s: str) -> float:
        return font.text_length(s, fontsize=FONT_SIZE)

    wrapped: List[str] = []
    for raw_line in text.splitlines():
        words = raw_line.split(" ")
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if width(candidate) <= max_width:
                current = candidate
                continue
            if current:
                wrapped.append(current)
            # Hard-split words wider than the line
            while width(word) > max_width and len(word) > 1:
                cut = len(word)
                while cut > 1 and width(word[:cut]) > max_width:
                    cut -= 1
                wrapped.append(word[:cut])
                word = word[cut:]
            current = word
        wrapped.append(current)
    return wrapped


def write_pdf(
    text: str,
    path: str,
    page_size: str = 'A4',
    orientation: str = 'portrait',
    fontfile: Optional[str] = None,
) -> int:
    """Render the answer key to a paginated PDF.

    The built-in Helvetica only covers Latin text. Pass ``fontfile`` (for
    example a Noto Sans TTF) for answers in other scripts.

    Args:
        text: Answer key text (markdown is written as-is)
        path: Output PDF path
        page_size: One of A4, A3, A5, Letter, Legal
        orientation: portrait or landscape
        fontfile: Optional TrueType/OpenType font embedded in the PDF

    Returns:
        Number of pages written

    Raises:
        ExportError: If the font cannot be loaded or the PDF cannot be written
        ImportError: If pymupdf (fitz) is not installed
    """
    if fitz is None:
        raise ImportError(
            "pymupdf (fitz) is required for PDF export. "
            "Install with: pip install pymupdf"
        )

    font = _load_font(fontfile)
    font_kwargs = {"fontname": EMBEDDED_FONT_NAME, "fontfile": str(fontfile)} if fontfile else {"fontname": FONT_NAME}

    width, height = get_page_size(page_size, orientation)
    lines = wrap_lines(text, width - 2 * MARGIN, font) or [""]
    line_step = FONT_SIZE * LINE_HEIGHT
    lines_per_page = max(1, int((height - 2 * MARGIN) // line_step))

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    doc = fitz.open()
    try:
        for start in range(0, len(lines), lines_per_page):
            chunk = lines[start:start + lines_per_page]
            page = doc.new_page(width=width, height=height)
            page.insert_text(
                fitz.Point(MARGIN, MARGIN + FONT_SIZE),
                "\n".join(chunk),
                fontsize=FONT_SIZE,
                lineheight=LINE_HEIGHT,
                **font_kwargs,
            )
        page_count = doc.page_count
        doc.save(str(out))
    except Exception as e:
        raise ExportError(f"Failed to write PDF {out}: {e}") from e
    finally:
        doc.close()

    logger.info("Wrote %d-page answer key to %s (%s)", page_count, out, format_bytes(out.stat().st_size))
    return page_count
