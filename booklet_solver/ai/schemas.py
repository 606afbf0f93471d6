"""Request and response schemas for the solver HTTP API."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models.processing_job import DetailLevel


class SolveDocumentRequest(BaseModel):
    """Request payload for solving a whole PDF."""
    pdf_data_uri: str = Field(description="PDF as data:application/pdf;base64,<data>")
    detail_level: DetailLevel = DetailLevel.DETAILED


class SolvePageRequest(BaseModel):
    """Request payload for solving a single rendered page."""
    page_image_uri: str = Field(description="Page image as data:image/png;base64,<data>")
    page_number: int = Field(ge=1)
    total_pages: int = Field(ge=1)
    detail_level: DetailLevel = DetailLevel.DETAILED

    @field_validator("total_pages")
    @classmethod
    def _page_within_total(cls, v: int, info):
        page_number = info.data.get("page_number")
        if page_number is not None and page_number > v:
            raise ValueError(f"page_number {page_number} exceeds total_pages {v}")
        return v


class SolveResponse(BaseModel):
    """Solved answer key returned by the service."""
    solved_answers: str = ""
    model: Optional[str] = None
