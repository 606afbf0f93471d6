"""Processing job and result models."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .document import SourceDocument
from .page_task import PageStatus, PageTask


class ProcessingMode(str, Enum):
    """How a document is submitted to the remote solver."""
    SINGLE = "single"
    PAGE_BY_PAGE = "page_by_page"


class JobState(str, Enum):
    """Job-level state: running -> {finished | cancelled | failed}."""
    RUNNING = "running"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    FAILED = "failed"


class DetailLevel(str, Enum):
    """Requested depth of the solved answers."""
    SHORT = "short"
    MEDIUM = "medium"
    DETAILED = "detailed"

    @classmethod
    def parse(cls, value) -> "DetailLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ", ".join(level.value for level in cls)
            raise ValueError(f"Invalid detail level: {value!r} (must be one of {allowed})")


@dataclass(frozen=True)
class JobProgress:
    """Point-in-time view of a job for progress rendering."""
    state: JobState
    mode: ProcessingMode
    current_page: Optional[int]
    total_pages: int
    statuses: Dict[int, PageStatus]
    completed: int
    failed: int
    pending: int

    @property
    def done(self) -> int:
        return self.completed + self.failed


@dataclass
class ProcessingJob:
    """A single solve run over one document.

    The page task list is created once, with one task per page, and never
    changes length. Only the processor loop that owns the job mutates it;
    ``request_cancel`` is the only operation safe to call from elsewhere.
    """

    source_document: SourceDocument
    page_tasks: List[PageTask]
    mode: ProcessingMode
    detail_level: DetailLevel = DetailLevel.DETAILED
    state: JobState = JobState.RUNNING
    current_page: Optional[int] = None
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def create(
        cls,
        source_document: SourceDocument,
        page_count: int,
        mode: ProcessingMode,
        detail_level: DetailLevel = DetailLevel.DETAILED,
    ) -> "ProcessingJob":
        """Create a job with all page tasks pending."""
        if page_count < 1:
            raise ValueError(f"page_count must be >= 1, got {page_count}")
        tasks = [PageTask(page_number=n) for n in range(1, page_count + 1)]
        return cls(
            source_document=source_document,
            page_tasks=tasks,
            mode=mode,
            detail_level=detail_level,
        )

    @property
    def total_pages(self) -> int:
        return len(self.page_tasks)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def request_cancel(self) -> None:
        """Ask the processor to stop before the next page."""
        self._cancel_event.set()

    def task(self, page_number: int) -> PageTask:
        if not 1 <= page_number <= self.total_pages:
            raise IndexError(f"Page {page_number} out of range 1..{self.total_pages}")
        return self.page_tasks[page_number - 1]

    def count(self, status: PageStatus) -> int:
        return sum(1 for t in self.page_tasks if t.status == status)

    def snapshot(self) -> JobProgress:
        """Return an immutable progress view for polling hosts."""
        return JobProgress(
            state=self.state,
            mode=self.mode,
            current_page=self.current_page,
            total_pages=self.total_pages,
            statuses={t.page_number: t.status for t in self.page_tasks},
            completed=self.count(PageStatus.COMPLETED),
            failed=self.count(PageStatus.ERROR),
            pending=self.count(PageStatus.PENDING),
        )


@dataclass
class ProcessingResult:
    """Outcome of a job: the combined answer text plus final page states."""
    combined_text: str
    mode: ProcessingMode
    state: JobState
    page_tasks: List[PageTask] = field(default_factory=list)

    def _pages(self, status: PageStatus) -> List[int]:
        return [t.page_number for t in self.page_tasks if t.status == status]

    @property
    def completed_pages(self) -> List[int]:
        return self._pages(PageStatus.COMPLETED)

    @property
    def failed_pages(self) -> List[int]:
        return self._pages(PageStatus.ERROR)

    @property
    def pending_pages(self) -> List[int]:
        return self._pages(PageStatus.PENDING)

    @property
    def has_errors(self) -> bool:
        return bool(self.failed_pages)
