"""Booklet solver: page-by-page AI answer keys for PDF question booklets."""
