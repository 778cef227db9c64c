# services/metadata/schema.py
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class BibliographicRecord(BaseModel):
    """
    Canonical record produced by every extraction path.
    Only `title` is non-optional; it is "" when unknown.
    """
    model_config = ConfigDict(strict=True, extra="ignore")

    title: str = ""
    authors: Optional[List[str]] = None
    year: Optional[int] = None
    publication_type: Optional[str] = None
    journal: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    publisher: Optional[str] = None
    doi: Optional[str] = None
    url: Optional[str] = None
    abstract_text: Optional[str] = None
    keywords: Optional[List[str]] = None


def _title_missing(value) -> bool:
    return value == ""


def _absent(value) -> bool:
    return value is None


# Fields checked after a registry hit. doi is excluded: it comes from the scanned identifier.
GAP_CHECKS: Tuple[Tuple[str, Callable[[object], bool]], ...] = (
    ("title", _title_missing),
    ("authors", _absent),
    ("year", _absent),
    ("journal", _absent),
    ("publication_type", _absent),
    ("volume", _absent),
    ("issue", _absent),
    ("pages", _absent),
    ("publisher", _absent),
    ("url", _absent),
    ("abstract_text", _absent),
    ("keywords", _absent),
)

_CHECKS_BY_FIELD = dict(GAP_CHECKS)


def missing_fields(record: BibliographicRecord) -> List[str]:
    return [name for name, is_missing in GAP_CHECKS if is_missing(getattr(record, name))]


def is_field_missing(record: BibliographicRecord, name: str) -> bool:
    return _CHECKS_BY_FIELD[name](getattr(record, name))
