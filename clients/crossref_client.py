# clients/crossref_client.py
import asyncio
import logging
import os
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from services.metadata.errors import RegistryLookupError
from services.metadata.schema import BibliographicRecord

logger = logging.getLogger(__name__)

CROSSREF_API_URL = "https://api.crossref.org/works/"
CROSSREF_MAILTO = os.getenv("CROSSREF_MAILTO", "")
CROSSREF_TIMEOUT = float(os.getenv("CROSSREF_TIMEOUT", "10"))


def _first(values: Any, kind: type) -> Optional[Any]:
    """First element of a CrossRef list field; TypeError if the field is not a list of `kind`."""
    if values is None:
        return None
    if not isinstance(values, list) or not all(isinstance(v, kind) for v in values):
        raise TypeError(f"Expected a list of {kind.__name__}, got {values!r}")
    return values[0] if values else None


def record_from_crossref(doi: str, message: Dict[str, Any]) -> BibliographicRecord:
    """
    Maps a CrossRef `message` object onto the canonical record.
    `doi` echoes the identifier that was looked up, not the response field.
    """
    authors = None
    if message.get("author") is not None:
        authors = [
            f"{a.get('given') or ''} {a.get('family') or ''}".strip()
            for a in message["author"]
        ]

    year = None
    published = message.get("published") or {}
    first_part = _first(published.get("date-parts"), list)
    if first_part:
        year = _first(first_part, int)

    return BibliographicRecord(
        title=_first(message.get("title"), str) or "",
        authors=authors,
        year=year,
        publication_type=message.get("type"),
        journal=_first(message.get("container-title"), str),
        volume=message.get("volume"),
        issue=message.get("issue"),
        pages=message.get("page"),
        publisher=message.get("publisher"),
        doi=doi,
        url=message.get("URL"),
        abstract_text=message.get("abstract"),
        keywords=None,
    )


class CrossRefClient:
    """
    Looks up DOI metadata on the CrossRef REST API.
    One request per lookup, no retries.
    """

    def __init__(self, mailto: str = CROSSREF_MAILTO, timeout: float = CROSSREF_TIMEOUT, base_url: str = CROSSREF_API_URL):
        self.base_url = base_url
        self.timeout = timeout
        user_agent = f"ScholarVault/1.0 (mailto:{mailto})" if mailto else "ScholarVault/1.0"
        self.headers = {"User-Agent": user_agent}

    async def lookup(self, doi: str) -> BibliographicRecord:
        """
        Raises:
            RegistryLookupError: On network failure, non-success status or unexpected payload.
        """
        url = f"{self.base_url}{doi}"
        try:
            async with aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as session:
                async with session.get(url) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        raise RegistryLookupError(f"CrossRef returned status {resp.status} for {doi}")
                    data = await resp.json(content_type=None)
        except RegistryLookupError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RegistryLookupError(f"CrossRef request failed for {doi}: {e}") from e

        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise RegistryLookupError(f"CrossRef response for {doi} has no message object")

        try:
            return record_from_crossref(doi, message)
        except (ValidationError, AttributeError, TypeError, IndexError) as e:
            raise RegistryLookupError(f"Unexpected CrossRef response shape for {doi}: {e}") from e
