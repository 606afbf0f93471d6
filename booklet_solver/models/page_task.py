"""Page task model tracking one page's processing lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PageStatus(str, Enum):
    """Lifecycle states of a single page."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# pending -> processing -> {completed | error}; completed and error are terminal
_ALLOWED_TRANSITIONS = {
    PageStatus.PENDING: {PageStatus.PROCESSING},
    PageStatus.PROCESSING: {PageStatus.COMPLETED, PageStatus.ERROR},
    PageStatus.COMPLETED: set(),
    PageStatus.ERROR: set(),
}


class InvalidTransitionError(ValueError):
    """Raised when a page task is moved to a state it cannot reach."""
    pass


@dataclass
class PageTask:
    """Processing state for one page of a job.

    Attributes:
        page_number: Page number (starts at 1)
        status: Current lifecycle state
        result: Solved text once completed
        error: Error message once failed
        error_kind: Classification of the failure (rate_limited/transient/fatal)
        attempts: Number of remote calls made for this page
    """

    page_number: int
    status: PageStatus = PageStatus.PENDING
    result: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    attempts: int = 0

    def __post_init__(self):
        """Validate page number is positive."""
        if self.page_number < 1:
            raise ValueError(f"Page number must be >= 1, got {self.page_number}")

    @property
    def is_terminal(self) -> bool:
        return self.status in (PageStatus.COMPLETED, PageStatus.ERROR)

    def _transition(self, target: PageStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Page {self.page_number}: cannot move from {self.status.value} to {target.value}"
            )
        self.status = target

    def start(self) -> None:
        """Mark the page as processing."""
        self._transition(PageStatus.PROCESSING)

    def complete(self, result: str) -> None:
        """Store the solved text and mark the page completed."""
        self._transition(PageStatus.COMPLETED)
        self.result = result
        self.error = None
        self.error_kind = None

    def fail(self, message: str, kind: Optional[str] = None) -> None:
        """Store the error message and mark the page failed."""
        self._transition(PageStatus.ERROR)
        self.error = message
        self.error_kind = kind

    def to_dict(self) -> dict:
        return {
            "page_number": self.page_number,
            "status": self.status.value,
            "result": self.result,
            "error": self.error,
            "error_kind": self.error_kind,
            "attempts": self.attempts,
        }
