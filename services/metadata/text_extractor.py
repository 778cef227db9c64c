# services/metadata/text_extractor.py
import asyncio
import logging
from pathlib import Path
from typing import Union

import fitz

from services.metadata.errors import ExtractionError

logger = logging.getLogger(__name__)

EXCERPT_LIMIT = 4000


def extract_excerpt(pdf_bytes: bytes, limit: int = EXCERPT_LIMIT) -> str:
    """
    Extracts plain text from PDF bytes and returns the first `limit` characters.
    Raises:
        ExtractionError: If the bytes are not a readable PDF.
    """
    if not pdf_bytes:
        raise ExtractionError("Empty document")

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ExtractionError(f"Failed to open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise ExtractionError("PDF is encrypted")
        if doc.page_count == 0:
            raise ExtractionError("PDF has no pages")
        text = "\n".join(page.get_text("text") for page in doc)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Failed to extract text from PDF: {e}") from e
    finally:
        doc.close()

    # str slicing is per code point, so the excerpt never ends mid-character
    return text[:limit]


def extract_excerpt_from_file(pdf_path: Union[str, Path], limit: int = EXCERPT_LIMIT) -> str:
    try:
        pdf_bytes = Path(pdf_path).read_bytes()
    except OSError as e:
        raise ExtractionError(f"Failed to read PDF: {e}") from e
    return extract_excerpt(pdf_bytes, limit)


async def extract_excerpt_async(pdf_bytes: bytes, limit: int = EXCERPT_LIMIT) -> str:
    return await asyncio.to_thread(extract_excerpt, pdf_bytes, limit)
