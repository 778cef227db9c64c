# File: api/routers/documents.py
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
from api.dependencies.auth import get_current_user, get_db
from api.dependencies.metadata import get_metadata_pipeline
from api.models.document_models import CreateDocumentRequest, UpdateDocumentRequest, DocumentResponse
from database.models.auth_models import User
from database.models.document_model import Document
from services.document_service import store_upload, enrich_upload, remove_file
from services.metadata.pipeline import MetadataPipeline
import logging
import uuid

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_UPLOAD_SIZE = 50 * 1024 * 1024


def _get_owned_document(db: Session, document_id: str, user_id: str) -> Document:
    document = (
        db.query(Document)
        .filter(Document.id == document_id, Document.user_id == user_id)
        .one_or_none()
    )
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def _insert_document(db: Session, user_id: str, fields: dict) -> Document:
    document = Document(id=str(uuid.uuid4()), user_id=user_id, **fields)
    try:
        db.add(document)
        db.commit()
        db.refresh(document)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create document: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create document")
    return document


@router.post("/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    request: CreateDocumentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _insert_document(db, current_user.id, request.model_dump())


@router.get("/documents", response_model=List[DocumentResponse])
async def list_documents(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        db.query(Document)
        .filter(Document.user_id == current_user.id)
        .order_by(Document.created_at.desc())
        .all()
    )


@router.post("/documents/upload", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_pdf(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: MetadataPipeline = Depends(get_metadata_pipeline)
):
    """
    Stores an uploaded PDF and creates a document from its extracted metadata.
    Falls back to the filename as title when enrichment fails.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    original_filename = file.filename or "unknown.pdf"
    if not original_filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    chunk_size = 8192
    content = bytearray()
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > MAX_UPLOAD_SIZE:
            raise HTTPException(status_code=413, detail="File too large (limit 50MB)")

    try:
        stored_path = await store_upload(bytes(content), original_filename)
    except OSError as e:
        logger.error(f"Failed to save upload: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save file")

    record = await enrich_upload(pipeline, stored_path, original_filename)

    fields = record.model_dump()
    fields["pdf_url"] = stored_path
    try:
        return _insert_document(db, current_user.id, fields)
    except HTTPException:
        await remove_file(stored_path)
        raise


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_owned_document(db, document_id, current_user.id)


@router.put("/documents/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    request: UpdateDocumentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    document = _get_owned_document(db, document_id, current_user.id)

    for field, value in request.model_dump(exclude_none=True).items():
        setattr(document, field, value)

    try:
        db.commit()
        db.refresh(document)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update document {document_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update document")
    return document


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    document = _get_owned_document(db, document_id, current_user.id)
    try:
        db.delete(document)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete document {document_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete document")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
