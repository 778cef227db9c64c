# File: services/document_service.py
import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from services.metadata.pipeline import MetadataPipeline
from services.metadata.schema import BibliographicRecord

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
PROFILE_IMAGE_DIR_NAME = "profile_images"


# ------------------------------------------------------------
# FILE STORAGE
# ------------------------------------------------------------
def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def store_upload(data: bytes, original_filename: str, upload_dir: Optional[Path] = None) -> str:
    """Writes an uploaded PDF as `{uuid}_{filename}` and returns the stored path."""
    base = Path(upload_dir or UPLOAD_DIR)
    safe_name = Path(original_filename).name
    stored_path = base / f"{uuid.uuid4()}_{safe_name}"
    await asyncio.to_thread(_write_file, stored_path, data)
    return stored_path.as_posix()


async def store_profile_image(data: bytes, user_id: str, extension: str, upload_dir: Optional[Path] = None) -> str:
    base = Path(upload_dir or UPLOAD_DIR) / PROFILE_IMAGE_DIR_NAME
    stored_path = base / f"{user_id}_{uuid.uuid4()}.{extension}"
    await asyncio.to_thread(_write_file, stored_path, data)
    return stored_path.as_posix()


async def remove_file(path: Optional[str]) -> None:
    """Deletes a stored file. A file that is already gone is not an error."""
    if not path:
        return
    try:
        await asyncio.to_thread(Path(path).unlink)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stored file {path}: {e}")


# ------------------------------------------------------------
# METADATA ENRICHMENT
# ------------------------------------------------------------
async def enrich_upload(pipeline: MetadataPipeline, stored_path: str, original_filename: str) -> BibliographicRecord:
    """
    Runs the metadata pipeline on a stored upload.
    Any pipeline failure yields a record titled with the original filename;
    the upload itself never fails because enrichment did.
    """
    try:
        record = await pipeline.run_file(stored_path)
        logger.info(f"Metadata extraction successful for {original_filename}")
    except Exception as e:
        logger.error(f"Metadata extraction failed: {e}. Using filename as fallback.", exc_info=True)
        record = BibliographicRecord(title=original_filename)
    return record
