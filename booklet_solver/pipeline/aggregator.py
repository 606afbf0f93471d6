"""Combine per-page answers into one ordered answer key."""

from typing import Dict, Iterable, List

from ..models.page_task import PageStatus, PageTask

PAGE_SEPARATOR = "\n\n---\n\n"


def format_page_header(page_number: int) -> str:
    return f"## Page {page_number}"


def format_error_notice(page_number: int, message: str) -> str:
    return f"> **Error processing page {page_number}:** {message or 'unknown error'}"


def render_entry(task: PageTask) -> str:
    """Render one finished page as header plus body."""
    if task.status == PageStatus.COMPLETED:
        body = (task.result or "").strip()
    else:
        body = format_error_notice(task.page_number, task.error or "")
    return f"{format_page_header(task.page_number)}\n\n{body}"


def aggregate(page_tasks: Iterable[PageTask]) -> str:
    """Join completed and failed pages in ascending page order.

    Pending pages (left over from a cancelled job) are omitted. Does not
    mutate the tasks; repeated calls on the same tasks give the same text.
    """
    finished: List[PageTask] = sorted(
        (t for t in page_tasks if t.status in (PageStatus.COMPLETED, PageStatus.ERROR)),
        key=lambda t: t.page_number,
    )
    return PAGE_SEPARATOR.join(render_entry(t) for t in finished)


def summarize(page_tasks: Iterable[PageTask]) -> Dict[str, int]:
    """Count pages per status."""
    counts = {status.value: 0 for status in PageStatus}
    for task in page_tasks:
        counts[task.status.value] += 1
    return counts
