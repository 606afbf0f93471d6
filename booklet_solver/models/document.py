"""Source document model representing an uploaded PDF."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


@dataclass
class SourceDocument:
    """Represents a PDF booklet submitted for solving.

    Attributes:
        filename: PDF filename
        filepath: Full path to PDF file
        size_bytes: File size in bytes
        metadata: Optional additional metadata
    """

    filename: str
    filepath: str
    size_bytes: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate that size is not negative."""
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")

    @property
    def stem(self) -> str:
        return Path(self.filename).stem

    def read_bytes(self) -> bytes:
        """Read the raw PDF payload."""
        return Path(self.filepath).read_bytes()
