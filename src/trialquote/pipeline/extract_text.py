"""Text extraction from protocol documents."""

from pathlib import Path

from pdfminer.high_level import extract_text as pdfminer_extract
from pdfminer.pdfpage import PDFPage

from trialquote.models.documents import ExtractedPage, ExtractedText

SUPPORTED_EXTENSIONS = {".pdf", ".txt"}


def extract_text(file_path: Path | str) -> ExtractedText:
    """
    Extract text from a PDF or plain-text protocol.

    Args:
        file_path: Path to the document

    Returns:
        ExtractedText with pages and full text
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == ".txt":
        content = file_path.read_text(encoding="utf-8", errors="replace")
        return ExtractedText(
            document_id=file_path.stem,
            pages=[ExtractedPage(page_number=1, text=content)],
            full_text=content,
            extraction_method="passthrough",
        )

    if suffix == ".pdf":
        return _extract_from_pdf(file_path)

    raise ValueError(f"Unsupported file type: {file_path.suffix}")


def _extract_from_pdf(file_path: Path) -> ExtractedText:
    with open(file_path, "rb") as f:
        num_pages = sum(1 for _ in PDFPage.get_pages(f))

    pages = [
        ExtractedPage(
            page_number=page_num,
            text=pdfminer_extract(str(file_path), page_numbers=[page_num - 1]).strip(),
        )
        for page_num in range(1, num_pages + 1)
    ]

    return ExtractedText(
        document_id=file_path.stem,
        pages=pages,
        full_text="\n".join(page.text for page in pages),
        extraction_method="pdfminer",
    )
