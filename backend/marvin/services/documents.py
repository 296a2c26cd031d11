"""PDF text extraction service using PyMuPDF."""

import logging
import re
from dataclasses import dataclass

import pymupdf  # PyMuPDF

from marvin.errors import ValidationError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
INVALID_PDF = "Die Datei ist keine gültige PDF-Datei."

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


@dataclass(frozen=True)
class ExtractedPDF:
    """Text of all pages plus the page count."""

    text: str
    page_count: int


def is_valid_pdf_upload(content_type: str | None, size: int, max_size: int) -> bool:
    """Uploads must be declared as PDF, non-empty and within max_size bytes."""
    return content_type == PDF_MIME_TYPE and 0 < size <= max_size


async def read_upload(file, max_size: int) -> bytes | None:
    """
    Read an upload, giving up as soon as it exceeds max_size bytes.

    Returns None for oversized uploads. The declared size (when the server
    knows it) is checked first, and at most max_size + 1 bytes are read.
    """
    if file.size is not None and file.size > max_size:
        return None
    data = await file.read(max_size + 1)
    if len(data) > max_size:
        return None
    return data


class PDFProcessor:
    """Service for extracting text from PDF files."""

    @staticmethod
    async def extract_text(pdf_bytes: bytes) -> ExtractedPDF:
        """
        Extract text from PDF bytes.

        Args:
            pdf_bytes: Raw bytes of the PDF file

        Returns:
            ExtractedPDF with pages joined by a blank line

        Raises:
            ValidationError: If the bytes are not a PDF with at least one page

        Example:
            >>> result = await PDFProcessor.extract_text(pdf_data)
            >>> print(f"Extracted {len(result.text)} chars from {result.page_count} pages")
        """
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            logger.warning("Could not open PDF: %s", e)
            raise ValidationError(INVALID_PDF) from e

        try:
            page_count = len(doc)
            text_pages = [page.get_text() for page in doc]
        finally:
            doc.close()

        if page_count == 0:
            raise ValidationError(INVALID_PDF)

        full_text = "\n\n".join(text_pages)
        # Strip NUL bytes and other control chars that Postgres rejects
        full_text = _ILLEGAL_CHARS.sub("", full_text)

        return ExtractedPDF(text=full_text, page_count=page_count)

