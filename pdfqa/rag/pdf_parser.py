"""PDF text extraction using PyMuPDF.

The pipeline only needs plain text: pages are concatenated in order,
separated by a newline. Layout and section structure are not recovered.
"""
from pathlib import Path
from typing import Union

import fitz  # PyMuPDF
import structlog

from pdfqa.errors import CollaboratorError

logger = structlog.get_logger()


def extract_text(source: Union[bytes, str, Path]) -> str:
    """Extract the text of every page of a PDF.

    Args:
        source: Raw PDF bytes or a path to a PDF file

    Returns:
        Page texts joined by newlines

    Raises:
        CollaboratorError: If the document cannot be opened or read
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
            name = "<bytes>"
        else:
            doc = fitz.open(str(source))
            name = str(source)

        with doc:
            pages = [page.get_text() for page in doc]

    except Exception as e:
        logger.error("pdf_extraction_failed", error=str(e), error_type=type(e).__name__)
        raise CollaboratorError(f"Failed to extract text from PDF: {e}", "extraction") from e

    text = "\n".join(pages)

    logger.info("pdf_text_extracted", source=name, page_count=len(pages), char_count=len(text))

    return text
