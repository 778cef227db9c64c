# File: api/models/document_models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Optional

from services.metadata.schema import BibliographicRecord


class CreateDocumentRequest(BibliographicRecord):
    """Manual entry. Accepts the canonical record plus the stored PDF path."""
    model_config = ConfigDict(strict=False)

    pdf_url: Optional[str] = None


class UpdateDocumentRequest(BaseModel):
    # Only fields sent with a non-null value are applied
    title: Optional[str] = None
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
    pdf_url: Optional[str] = None


class DocumentResponse(BaseModel):
    id: str
    user_id: str
    title: str
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
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
