"""Resume text extraction from uploaded PDF files."""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader

LOGGER = logging.getLogger("prepview.api.pdf")


class PdfExtractionError(RuntimeError):
    """The upload could not be parsed as a PDF."""


def extract_pdf_text(data: bytes) -> str:
    """Text of every page, pages separated by a blank line."""

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        LOGGER.error("Error extracting PDF text: %s", exc)
        raise PdfExtractionError("Failed to extract PDF text") from exc
    return "\n\n".join(page.strip() for page in pages).strip()
