"""Prompt templates for whole-document and per-page solving."""

from ..models.processing_job import DetailLevel

DETAIL_DESCRIPTIONS = {
    DetailLevel.SHORT: "answer only",
    DetailLevel.MEDIUM: "brief explanation",
    DetailLevel.DETAILED: "full step-by-step solution",
}

SYSTEM_PROMPT = (
    "You are an expert tutor who writes answer keys for question papers and booklets. "
    "Return only the answer key in markdown."
)

_RULES = (
    "Rules: answer in the same language as the document, use KaTeX for math "
    "($$formula$$), format as markdown (## Q1, **Answer:**)."
)

EMPTY_PAGE_TEXT = "No questions found on this page."


def build_document_prompt(detail_level) -> str:
    """Prompt for solving every question in a whole PDF."""
    level = DetailLevel.parse(detail_level)
    return (
        f"Solve all questions from the attached PDF. Detail: {level.value} "
        f"({DETAIL_DESCRIPTIONS[level]}).\n{_RULES}"
    )


def build_page_prompt(page_number: int, total_pages: int, detail_level) -> str:
    """Prompt for solving the questions on one page image."""
    level = DetailLevel.parse(detail_level)
    return (
        f"Solve the questions on this page ({page_number}/{total_pages}). "
        f"Detail: {level.value} ({DETAIL_DESCRIPTIONS[level]}).\n{_RULES}\n"
        f"If the page has no questions, reply exactly: {EMPTY_PAGE_TEXT}"
    )
