"""Run summary model and serialization."""

import json
import math
import os
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models.processing_job import JobState, ProcessingMode, ProcessingResult


def _sanitize_for_json(obj: Any) -> Any:
    """Recursively replace NaN/Inf and enum values so JSON round-trip works."""
    if isinstance(obj, dict):
        return {str(k): _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    if isinstance(obj, float):
        return 0.0 if (math.isnan(obj) or math.isinf(obj)) else obj
    if isinstance(obj, (str, int, type(None), bool)):
        return obj
    value = getattr(obj, "value", None)
    if value is not None:
        return value
    return str(obj)


@dataclass
class RunSummary:
    """Summary of one solve run."""
    run_id: str
    input_path: str
    output_dir: str
    started_at: str
    finished_at: Optional[str] = None
    status: str = "RUNNING"  # RUNNING, COMPLETED, PARTIAL, CANCELLED, FAILED

    # Processing
    mode: Optional[str] = None
    detail_level: Optional[str] = None
    provider: Optional[str] = None
    total_pages: int = 0
    completed_pages: int = 0
    failed_pages: int = 0
    pending_pages: int = 0

    # Paths
    markdown_path: Optional[str] = None
    pdf_path: Optional[str] = None

    # Details
    errors: List[Dict[str, Any]] = field(default_factory=list)
    durations: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def create(cls, input_path: str, output_dir: str) -> 'RunSummary':
        """Create a new run summary."""
        return cls(
            run_id=str(uuid.uuid4()),
            input_path=str(input_path),
            output_dir=str(output_dir),
            started_at=datetime.now().isoformat()
        )

    def record_result(self, result: ProcessingResult) -> None:
        """Copy page counts and per-page errors from a processing result."""
        self.mode = result.mode.value
        self.total_pages = len(result.page_tasks)
        if result.mode == ProcessingMode.SINGLE:
            # Page tasks stay pending in single mode; the one call decides every page
            self.completed_pages = self.total_pages if result.state == JobState.FINISHED else 0
            self.failed_pages = self.total_pages if result.state == JobState.FAILED else 0
            self.pending_pages = self.total_pages if result.state == JobState.CANCELLED else 0
        else:
            self.completed_pages = len(result.completed_pages)
            self.failed_pages = len(result.failed_pages)
            self.pending_pages = len(result.pending_pages)
        for task in result.page_tasks:
            if task.error:
                self.errors.append({
                    "page": task.page_number,
                    "error": task.error,
                    "kind": task.error_kind,
                })

    def add_error(self, message: str, page: Optional[int] = None) -> None:
        self.errors.append({"page": page, "error": message, "kind": None})

    @staticmethod
    def status_for(result: ProcessingResult) -> str:
        """Map a job outcome to a run status."""
        if result.state == JobState.CANCELLED:
            return "CANCELLED"
        if result.state == JobState.FAILED:
            return "FAILED"
        return "PARTIAL" if result.has_errors else "COMPLETED"

    def complete(self, status: str = "COMPLETED"):
        """Mark run as completed."""
        self.status = status
        self.finished_at = datetime.now().isoformat()

    def save(self, path: Path):
        """Save summary to JSON file (atomic write to avoid truncated file on interrupt)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = _sanitize_for_json(asdict(self))
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)

    @classmethod
    def load(cls, path: Path) -> 'RunSummary':
        with open(path, "r", encoding="utf-8") as f:
            return cls(**json.load(f))
