"""Pydantic models for protocol document text."""

from pydantic import BaseModel, Field


class ExtractedPage(BaseModel):
    """Text extracted from a single page."""

    page_number: int = Field(..., ge=1, description="Page number (1-indexed)")
    text: str = Field(..., description="Extracted text content")


class ExtractedText(BaseModel):
    """Text extracted from a protocol document."""

    document_id: str = Field(..., description="Source document name")
    pages: list[ExtractedPage] = Field(..., description="Text by page")
    full_text: str = Field(..., description="Concatenated full text")
    extraction_method: str = Field(..., description="Method used (pdfminer, passthrough)")

    @property
    def total_pages(self) -> int:
        return len(self.pages)
