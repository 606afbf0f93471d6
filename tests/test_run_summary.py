"""Unit tests for run summary."""

import json

from booklet_solver.ai.errors import ErrorKind
from booklet_solver.models.page_task import PageTask
from booklet_solver.models.processing_job import JobState, ProcessingMode, ProcessingResult
from booklet_solver.run_summary import RunSummary


def _result(state=JobState.FINISHED, failed=(), pending=()):
    tasks = []
    for n in range(1, 5):
        task = PageTask(page_number=n)
        if n not in pending:
            task.start()
            if n in failed:
                task.fail("Rate limit reached", kind=ErrorKind.RATE_LIMITED.value)
            else:
                task.complete(f"answers {n}")
        tasks.append(task)
    return ProcessingResult(
        combined_text="text",
        mode=ProcessingMode.PAGE_BY_PAGE,
        state=state,
        page_tasks=tasks,
    )


def test_create():
    summary = RunSummary.create("in/booklet.pdf", "out/booklet")

    assert summary.status == "RUNNING"
    assert summary.input_path == "in/booklet.pdf"
    assert summary.finished_at is None
    assert len(summary.run_id) == 36


def test_record_result_counts_pages():
    summary = RunSummary.create("a.pdf", "out")
    summary.record_result(_result(failed=(2,), pending=(4,)))

    assert summary.mode == "page_by_page"
    assert summary.total_pages == 4
    assert summary.completed_pages == 2
    assert summary.failed_pages == 1
    assert summary.pending_pages == 1
    assert summary.errors == [{"page": 2, "error": "Rate limit reached", "kind": "rate_limited"}]


def test_status_for():
    assert RunSummary.status_for(_result()) == "COMPLETED"
    assert RunSummary.status_for(_result(failed=(1,))) == "PARTIAL"
    assert RunSummary.status_for(_result(state=JobState.CANCELLED, pending=(3, 4))) == "CANCELLED"
    assert RunSummary.status_for(_result(state=JobState.FAILED)) == "FAILED"


def test_save_and_load(tmp_path):
    summary = RunSummary.create("a.pdf", str(tmp_path))
    summary.record_result(_result(failed=(3,)))
    summary.add_error("Export failed: disk full")
    summary.durations["total"] = float("nan")
    summary.complete("PARTIAL")

    path = tmp_path / "nested" / "run_summary.json"
    summary.save(path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["status"] == "PARTIAL"
    assert data["errors"][0]["kind"] == "rate_limited"
    assert data["durations"]["total"] == 0.0
    assert not (tmp_path / "nested" / "run_summary.json.tmp").exists()

    loaded = RunSummary.load(path)
    assert loaded.run_id == summary.run_id
    assert loaded.failed_pages == 1
    assert loaded.errors[1] == {"page": None, "error": "Export failed: disk full", "kind": None}


def _single_result(state):
    return ProcessingResult(
        combined_text="## Q1\n**Answer:** 4" if state == JobState.FINISHED else "",
        mode=ProcessingMode.SINGLE,
        state=state,
        page_tasks=[PageTask(page_number=n) for n in range(1, 4)],
    )


def test_record_result_single_mode_finished():
    """A finished whole-document call counts every page as solved."""
    summary = RunSummary.create("a.pdf", "out")
    summary.record_result(_single_result(JobState.FINISHED))

    assert summary.mode == "single"
    assert summary.total_pages == 3
    assert summary.completed_pages == 3
    assert summary.failed_pages == 0
    assert summary.pending_pages == 0


def test_record_result_single_mode_cancelled():
    summary = RunSummary.create("a.pdf", "out")
    summary.record_result(_single_result(JobState.CANCELLED))

    assert summary.completed_pages == 0
    assert summary.pending_pages == 3
