"""Pipeline stages for booklet solving."""

from .aggregator import aggregate, summarize
from .reader import DocumentParseError, get_page_count, open_document

__all__ = ["aggregate", "summarize", "DocumentParseError", "get_page_count", "open_document"]
