# services/metadata/pipeline.py
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol, Union

from services.metadata.errors import ExtractionError, MetadataError, RegistryLookupError
from services.metadata.identifiers import find_doi
from services.metadata.schema import BibliographicRecord, is_field_missing, missing_fields
from services.metadata.text_extractor import extract_excerpt_async

logger = logging.getLogger(__name__)


class RegistryClient(Protocol):
    async def lookup(self, doi: str) -> BibliographicRecord: ...


class CompletionExtractor(Protocol):
    async def extract(self, excerpt: str) -> BibliographicRecord: ...


class MetadataPipeline:
    """
    Builds a bibliographic record for an uploaded PDF.

    PIPELINE:
    1. Text excerpt (fatal on failure)
    2. DOI scan, first match only
    3. Registry lookup -> gap-fill missing fields from the completion extractor
    4. Completion-only fallback when there is no DOI or the lookup failed
    """

    def __init__(
        self,
        registry: RegistryClient,
        completion: CompletionExtractor,
        text_extractor: Callable[[bytes], Awaitable[str]] = extract_excerpt_async,
    ):
        self.registry = registry
        self.completion = completion
        self.text_extractor = text_extractor

    async def run_file(self, pdf_path: Union[str, Path]) -> BibliographicRecord:
        try:
            pdf_bytes = await asyncio.to_thread(Path(pdf_path).read_bytes)
        except OSError as e:
            raise ExtractionError(f"Failed to read PDF: {e}") from e
        return await self.run(pdf_bytes)

    async def run(self, pdf_bytes: bytes) -> BibliographicRecord:
        excerpt = await self.text_extractor(pdf_bytes)

        doi = find_doi(excerpt)
        if doi:
            logger.info(f"Found DOI: {doi}")
            record = await self._lookup(doi)
            if record is not None:
                return await self._fill_gaps(record, excerpt)
        else:
            logger.info("No DOI found in PDF. Using completion extraction.")

        return await self.completion.extract(excerpt)

    async def _lookup(self, doi: str) -> Optional[BibliographicRecord]:
        try:
            record = await self.registry.lookup(doi)
        except RegistryLookupError as e:
            logger.warning(f"Registry lookup failed: {e}. Falling back to completion extraction.")
            return None
        logger.info("Registry lookup successful")
        return record

    async def _fill_gaps(self, record: BibliographicRecord, excerpt: str) -> BibliographicRecord:
        missing = missing_fields(record)
        if not missing:
            logger.info("Registry record is complete, no completion needed")
            return record

        logger.info(f"Registry record missing fields: {missing}. Using completion to fill gaps...")
        try:
            extracted = await self.completion.extract(excerpt)
        except MetadataError as e:
            logger.warning(f"Completion extraction failed: {e}. Using registry data with gaps.")
            return record

        merged = record.model_copy()
        for name in missing:
            if is_field_missing(merged, name):
                setattr(merged, name, getattr(extracted, name))
        return merged
