"""CLI interface for solving PDF booklets."""

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from ..ai import ProviderConfigError, RemoteTransformError, SolverProvider, create_provider
from ..config import get_app_version, get_default_output_dir, set_profile
from ..export.answer_key import ExportError, format_bytes, write_markdown, write_pdf
from ..models.page_task import PageStatus, PageTask
from ..models.processing_job import DetailLevel, ProcessingJob
from ..pipeline.processor import ProcessorConfig, SequentialProcessor
from ..pipeline.reader import DocumentParseError, open_document
from ..run_summary import RunSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FAILED = 2


class CancelOnInterrupt:
    """SIGINT handler: first Ctrl+C cancels the job after the current page, second aborts.

    A first Ctrl+C outside a running job (while opening a file or between
    files) sets ``stop_requested``; the next job starts cancelled and no
    further inputs are solved.
    """

    def __init__(self):
        self.job: Optional[ProcessingJob] = None
        self.stop_requested = False
        self._previous = None

    def __enter__(self):
        self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, exc_type, exc, tb):
        signal.signal(signal.SIGINT, self._previous)
        return False

    def _handle(self, signum, frame):
        if self.stop_requested:
            raise KeyboardInterrupt
        self.stop_requested = True
        print("\nCancelling after the current page (Ctrl+C again to abort)...", file=sys.stderr)
        if self.job is not None:
            self.job.request_cancel()

    def attach(self, job: ProcessingJob) -> None:
        """Track a job, cancelling it at once if a stop was already requested."""
        self.job = job
        if self.stop_requested:
            job.request_cancel()


def print_progress(job: ProcessingJob, task: Optional[PageTask]) -> None:
    """Print one line per finished page."""
    if task is None or not task.is_terminal:
        return
    snapshot = job.snapshot()
    marker = "ok" if task.status == PageStatus.COMPLETED else f"ERROR: {task.error}"
    print(f"  Page {task.page_number}/{snapshot.total_pages} {marker}  ({snapshot.done}/{snapshot.total_pages} done)")


def solve_file(
    pdf_path: str,
    output_dir: str,
    provider: SolverProvider,
    config: ProcessorConfig,
    detail_level: DetailLevel = DetailLevel.DETAILED,
    formats: tuple = ("md",),
    max_file_size_mb: Optional[float] = 50,
    interrupt: Optional[CancelOnInterrupt] = None,
    pdf_font: Optional[str] = None,
) -> Dict:
    """Solve one PDF and write its answer key and run summary.

    Returns:
        Dict with status (COMPLETED/PARTIAL/CANCELLED/FAILED), summary and output paths
    """
    pdf_file = Path(pdf_path)
    job_dir = Path(output_dir) / pdf_file.stem
    summary = RunSummary.create(str(pdf_file), str(job_dir))
    summary.detail_level = detail_level.value
    summary.provider = getattr(provider, "name", type(provider).__name__)
    started = time.time()

    processor = SequentialProcessor(provider, config=config, progress_callback=print_progress)
    try:
        document = open_document(str(pdf_file), max_file_size_mb=max_file_size_mb)
        print(f"Solving {document.filename} ({format_bytes(document.size_bytes)})...")
        job = processor.create_job(document, detail_level)
        print(f"  {job.total_pages} pages, mode: {job.mode.value}")
        if interrupt is not None:
            interrupt.attach(job)
        result = processor.run(job)
    except KeyboardInterrupt:
        summary.add_error("Aborted by user")
        summary.durations["total"] = round(time.time() - started, 3)
        summary.complete("CANCELLED")
        summary.save(job_dir / "run_summary.json")
        raise
    except (DocumentParseError, RemoteTransformError) as e:
        logger.error("Failed to solve %s: %s", pdf_file.name, e)
        summary.add_error(str(e))
        summary.durations["total"] = round(time.time() - started, 3)
        summary.complete("FAILED")
        summary.save(job_dir / "run_summary.json")
        return {"status": "FAILED", "error": str(e), "summary": summary}
    finally:
        if interrupt is not None:
            interrupt.job = None

    summary.record_result(result)
    summary.durations["solve"] = round(time.time() - started, 3)

    outputs: Dict[str, str] = {}
    if result.combined_text:
        try:
            if "md" in formats:
                outputs["md"] = write_markdown(result.combined_text, str(job_dir / f"{pdf_file.stem}_answers.md"))
                summary.markdown_path = outputs["md"]
            if "pdf" in formats:
                pdf_out = job_dir / f"{pdf_file.stem}_answers.pdf"
                write_pdf(result.combined_text, str(pdf_out), fontfile=pdf_font)
                outputs["pdf"] = str(pdf_out)
                summary.pdf_path = outputs["pdf"]
        except (ExportError, OSError) as e:
            logger.error("Failed to export answer key for %s: %s", pdf_file.name, e)
            summary.add_error(f"Export failed: {e}")

    status = RunSummary.status_for(result)
    summary.durations["total"] = round(time.time() - started, 3)
    summary.complete(status)
    summary.save(job_dir / "run_summary.json")
    return {"status": status, "result": result, "summary": summary, "outputs": outputs}


def exit_code_for(statuses: List[str]) -> int:
    """0 if every run completed cleanly, 2 if any failed, else 1."""
    if any(s == "FAILED" for s in statuses):
        return EXIT_FAILED
    if any(s in ("PARTIAL", "CANCELLED") for s in statuses):
        return EXIT_PARTIAL
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="booklet-solver",
        description="Booklet Solver - Generate answer keys for PDF question booklets"
    )
    parser.add_argument("inputs", nargs="*", help="PDF files to solve")
    parser.add_argument("--output", help="Output directory (default: ./out or BOOKLET_OUTPUT_DIR)")
    parser.add_argument(
        "--detail",
        choices=[level.value for level in DetailLevel],
        help="Answer detail level (default: from profile)"
    )
    parser.add_argument("--profile", default=None, help="Configuration profile name (default: default)")
    parser.add_argument("--threshold", type=int, help="Max pages solved in a single call")
    parser.add_argument("--page-delay-ms", type=int, help="Pause between page requests")
    parser.add_argument("--rate-limit-backoff-ms", type=int, help="Pause after a rate-limited page")
    parser.add_argument(
        "--retry-rate-limited",
        action="store_true",
        help="Retry a rate-limited page after the backoff instead of moving on"
    )
    parser.add_argument("--provider", choices=["openai", "claude", "http"], help="AI provider (default: AI_PROVIDER)")
    parser.add_argument("--model", help="Model name (default: AI_MODEL or provider default)")
    parser.add_argument("--format", choices=["md", "pdf", "both"], default="md", help="Answer key format")
    parser.add_argument("--pdf-font", help="TrueType/OpenType font for PDF output (needed for non-Latin answers)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--check-deps", action="store_true", help="Check installed dependencies and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.check_deps:
        from .check_deps import run_check
        sys.exit(0 if run_check(verbose=True) else 1)

    if not args.inputs:
        parser.error("at least one input PDF is required")

    try:
        profile = set_profile(args.profile or "default")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    config = ProcessorConfig.from_profile(profile)
    if args.threshold is not None:
        config.page_threshold = args.threshold
    if args.page_delay_ms is not None:
        config.page_delay_ms = args.page_delay_ms
    if args.rate_limit_backoff_ms is not None:
        config.rate_limit_backoff_ms = args.rate_limit_backoff_ms
    if args.retry_rate_limited:
        config.retry_rate_limited_pages = True

    detail_level = DetailLevel.parse(args.detail or profile.detail_level)
    formats = ("md", "pdf") if args.format == "both" else (args.format,)

    try:
        provider = create_provider(args.provider, model=args.model)
    except ProviderConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    output_dir = args.output or str(get_default_output_dir())

    statuses = []
    try:
        with CancelOnInterrupt() as interrupt:
            run_inputs(args.inputs, statuses, interrupt, lambda pdf_path: solve_file(
                pdf_path,
                output_dir,
                provider,
                config,
                detail_level=detail_level,
                formats=formats,
                max_file_size_mb=profile.max_file_size_mb,
                interrupt=interrupt,
                pdf_font=args.pdf_font,
            ))
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        statuses.append("CANCELLED")

    sys.exit(exit_code_for(statuses))


def run_inputs(inputs: List[str], statuses: List[str], interrupt: CancelOnInterrupt, solve) -> None:
    """Solve inputs in order, appending each status; stop after a cancellation."""
    for pdf_path in inputs:
        if interrupt.stop_requested:
            print(f"{Path(pdf_path).name}: skipped (cancelled)")
            statuses.append("CANCELLED")
            break
        outcome = solve(pdf_path)
        statuses.append(outcome["status"])
        summary = outcome["summary"]
        line = f"{Path(pdf_path).name}: {outcome['status']}"
        if summary.total_pages:
            line += f" ({summary.completed_pages} solved, {summary.failed_pages} failed, {summary.pending_pages} not started)"
        print(line)
        for path in outcome.get("outputs", {}).values():
            print(f"  Answer key: {path}")
        if outcome["status"] == "FAILED":
            print(f"  Error: {outcome['error']}", file=sys.stderr)
        if outcome["status"] == "CANCELLED":
            break


if __name__ == "__main__":
    main()
