"""Sequential page processor.

Drives one ProcessingJob at a time. Small documents go to the solver in a
single call; larger ones are rendered and solved one page at a time with a
fixed pause between remote calls and a longer pause after a rate-limit
response. Pages are never processed in parallel, so completion order equals
page order. Cancellation is cooperative and only checked between pages.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ..ai.errors import ErrorKind, RemoteTransformError, as_transform_error
from ..ai.providers import SolverProvider
from ..models.document import SourceDocument
from ..models.page_task import PageTask
from ..models.processing_job import (
    DetailLevel,
    JobState,
    ProcessingJob,
    ProcessingMode,
    ProcessingResult,
)
from .aggregator import aggregate
from .pdf_renderer import DEFAULT_SCALE_FACTOR, PageImage, PdfPageExtractor
from .reader import DocumentParseError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessingJob, Optional[PageTask]], None]


class PageExtractor(Protocol):
    """Anything that can count and rasterize a document's pages."""

    def get_page_count(self, document: SourceDocument) -> int: ...

    def render_page(self, document: SourceDocument, page_number: int, scale_factor: float) -> PageImage: ...


@dataclass
class ProcessorConfig:
    """Pacing and mode-selection settings for the processor."""
    page_threshold: int = 5
    page_delay_ms: int = 3000
    rate_limit_backoff_ms: int = 10000
    render_scale: float = DEFAULT_SCALE_FACTOR
    retry_rate_limited_pages: bool = False
    max_rate_limit_retries: int = 1

    @classmethod
    def from_profile(cls, profile) -> "ProcessorConfig":
        return cls(
            page_threshold=profile.page_threshold,
            page_delay_ms=profile.page_delay_ms,
            rate_limit_backoff_ms=profile.rate_limit_backoff_ms,
            render_scale=profile.render_scale,
            retry_rate_limited_pages=profile.retry_rate_limited_pages,
            max_rate_limit_retries=profile.max_rate_limit_retries,
        )


def select_mode(page_count: int, threshold: int) -> ProcessingMode:
    """Whole-document solving up to and including the threshold, page by page above it."""
    if page_count <= threshold:
        return ProcessingMode.SINGLE
    return ProcessingMode.PAGE_BY_PAGE


class SequentialProcessor:
    """Runs processing jobs against a solver provider."""

    def __init__(
        self,
        provider: SolverProvider,
        extractor: Optional[PageExtractor] = None,
        config: Optional[ProcessorConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize processor.

        Args:
            provider: Remote solver for whole documents and single pages
            extractor: Page extractor (default: PdfPageExtractor)
            config: Pacing and threshold settings (default: ProcessorConfig())
            sleep: Blocking wait in seconds; injectable for tests
            progress_callback: Called with (job, task) after each state change
        """
        self.provider = provider
        self.extractor = extractor or PdfPageExtractor()
        self.config = config or ProcessorConfig()
        self.sleep = sleep
        self.progress_callback = progress_callback

    def create_job(self, document: SourceDocument, detail_level=DetailLevel.DETAILED) -> ProcessingJob:
        """Count pages, pick the mode and create a job with all pages pending.

        Raises:
            DocumentParseError: If the page count cannot be determined
        """
        page_count = self.extractor.get_page_count(document)
        if page_count < 1:
            raise DocumentParseError(f"{document.filename} contains no pages")
        mode = select_mode(page_count, self.config.page_threshold)
        logger.info(
            "Created job for %s: %d pages, mode=%s (threshold %d)",
            document.filename, page_count, mode.value, self.config.page_threshold,
        )
        return ProcessingJob.create(document, page_count, mode, DetailLevel.parse(detail_level))

    def process(self, document: SourceDocument, detail_level=DetailLevel.DETAILED) -> ProcessingResult:
        """Create a job for a document and run it to completion."""
        return self.run(self.create_job(document, detail_level))

    def run(self, job: ProcessingJob) -> ProcessingResult:
        """Drive a job to a terminal state.

        Raises:
            RemoteTransformError: Single mode only, when the one remote call fails
            DocumentParseError: When a page cannot be rendered
        """
        started = time.monotonic()
        job.state = JobState.RUNNING
        if job.mode == ProcessingMode.SINGLE:
            result = self._run_single(job)
        else:
            result = self._run_page_by_page(job)
        logger.info(
            "Job for %s %s in %.1fs: %d completed, %d failed, %d pending",
            job.source_document.filename, result.state.value, time.monotonic() - started,
            len(result.completed_pages), len(result.failed_pages), len(result.pending_pages),
        )
        return result

    def _notify(self, job: ProcessingJob, task: Optional[PageTask] = None) -> None:
        if self.progress_callback is not None:
            self.progress_callback(job, task)

    def _run_single(self, job: ProcessingJob) -> ProcessingResult:
        document = job.source_document
        if job.cancel_requested:
            job.state = JobState.CANCELLED
            self._notify(job)
            return ProcessingResult(combined_text="", mode=job.mode, state=job.state, page_tasks=job.page_tasks)

        logger.info("Solving %s in a single call (%d pages)", document.filename, job.total_pages)
        self._notify(job)
        try:
            pdf_bytes = document.read_bytes()
        except OSError as e:
            job.state = JobState.FAILED
            raise DocumentParseError(f"Failed to read {document.filename}: {e}") from e

        try:
            text = self.provider.solve_document(pdf_bytes, job.detail_level)
        except Exception as e:
            job.state = JobState.FAILED
            self._notify(job)
            error = as_transform_error(e)
            logger.error("Single-call solve of %s failed: %s", document.filename, error)
            if error is e:
                raise
            raise error from e

        job.state = JobState.FINISHED
        self._notify(job)
        return ProcessingResult(combined_text=text, mode=job.mode, state=job.state, page_tasks=job.page_tasks)

    def _solve_page(self, job: ProcessingJob, task: PageTask) -> Optional[RemoteTransformError]:
        """Render and solve one page, retrying after rate-limit backoff when enabled.

        Returns the final remote error, or None on success.
        """
        image = self.extractor.render_page(job.source_document, task.page_number, self.config.render_scale)
        retries_left = self.config.max_rate_limit_retries if self.config.retry_rate_limited_pages else 0

        while True:
            task.attempts += 1
            try:
                text = self.provider.solve_page(
                    image.png_bytes, task.page_number, job.total_pages, job.detail_level
                )
            except Exception as e:
                error = as_transform_error(e)
                if error.kind != ErrorKind.RATE_LIMITED or retries_left <= 0 or job.cancel_requested:
                    return error
                retries_left -= 1
                logger.warning(
                    "Page %d rate limited, retrying after %d ms backoff",
                    task.page_number, self.config.rate_limit_backoff_ms,
                )
                self.sleep(self.config.rate_limit_backoff_ms / 1000.0)
                if job.cancel_requested:
                    return error
                continue
            task.complete(text)
            return None

    def _run_page_by_page(self, job: ProcessingJob) -> ProcessingResult:
        document = job.source_document
        total = job.total_pages
        logger.info("Solving %s page by page (%d pages)", document.filename, total)

        for task in job.page_tasks:
            if job.cancel_requested:
                logger.info("Cancellation requested, stopping before page %d of %d", task.page_number, total)
                job.state = JobState.CANCELLED
                break

            job.current_page = task.page_number
            task.start()
            self._notify(job, task)

            try:
                error = self._solve_page(job, task)
            except DocumentParseError as e:
                task.fail(str(e), ErrorKind.FATAL.value)
                job.state = JobState.FAILED
                job.current_page = None
                self._notify(job, task)
                logger.error("Cannot render page %d of %s: %s", task.page_number, document.filename, e)
                raise

            if error is None:
                logger.info("Page %d/%d completed", task.page_number, total)
            else:
                task.fail(str(error), error.kind.value)
                logger.warning("Page %d/%d failed (%s): %s", task.page_number, total, error.kind.value, error)
            self._notify(job, task)

            if task.page_number < total and not job.cancel_requested:
                if error is not None and error.kind == ErrorKind.RATE_LIMITED:
                    delay_ms = self.config.rate_limit_backoff_ms
                    logger.warning("Rate limit hit on page %d, backing off %d ms", task.page_number, delay_ms)
                else:
                    delay_ms = self.config.page_delay_ms
                if delay_ms > 0:
                    self.sleep(delay_ms / 1000.0)

        job.current_page = None
        if job.state == JobState.RUNNING:
            job.state = JobState.FINISHED
        self._notify(job)
        return ProcessingResult(
            combined_text=aggregate(job.page_tasks),
            mode=job.mode,
            state=job.state,
            page_tasks=job.page_tasks,
        )
