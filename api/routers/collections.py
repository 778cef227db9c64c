# File: api/routers/collections.py
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from api.dependencies.auth import get_current_user, get_db
from api.models.collection_models import CreateCollectionRequest, UpdateCollectionRequest, CollectionResponse
from api.models.document_models import DocumentResponse
from database.models.auth_models import User
from database.models.collection_model import Collection
from database.models.document_model import Document, document_collections
import logging
import uuid

logger = logging.getLogger(__name__)
router = APIRouter()


def _find_owned_collection(db: Session, collection_id: str, user_id: str) -> Optional[Collection]:
    return (
        db.query(Collection)
        .filter(Collection.id == collection_id, Collection.user_id == user_id)
        .one_or_none()
    )


def _get_owned_collection(db: Session, collection_id: str, user_id: str) -> Collection:
    collection = _find_owned_collection(db, collection_id, user_id)
    if collection is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection


def _is_descendant(db: Session, candidate_id: str, ancestor_id: str) -> bool:
    """True if `candidate_id` sits somewhere below `ancestor_id` in the tree."""
    seen = set()
    current = db.get(Collection, candidate_id)
    while current is not None and current.parent_id and current.id not in seen:
        if current.parent_id == ancestor_id:
            return True
        seen.add(current.id)
        current = db.get(Collection, current.parent_id)
    return False


def _commit(db: Session, action: str):
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/collections", response_model=List[CollectionResponse])
async def list_collections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        db.query(Collection)
        .filter(Collection.user_id == current_user.id)
        .order_by(Collection.name.asc())
        .all()
    )


@router.post("/collections", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CreateCollectionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if request.parent_id and _find_owned_collection(db, request.parent_id, current_user.id) is None:
        raise HTTPException(status_code=400, detail="Parent collection not found")

    collection = Collection(
        id=str(uuid.uuid4()),
        user_id=current_user.id,
        name=request.name,
        parent_id=request.parent_id
    )
    db.add(collection)
    _commit(db, "create collection")
    db.refresh(collection)
    return collection


@router.put("/collections/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: str,
    request: UpdateCollectionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collection = _get_owned_collection(db, collection_id, current_user.id)

    if request.parent_id is not None:
        if request.parent_id == collection_id:
            raise HTTPException(status_code=400, detail="Collection cannot be its own parent")
        if _find_owned_collection(db, request.parent_id, current_user.id) is None:
            raise HTTPException(status_code=400, detail="Parent collection not found")
        if _is_descendant(db, request.parent_id, collection_id):
            raise HTTPException(status_code=400, detail="Collection cannot be moved into its own subtree")
        collection.parent_id = request.parent_id

    if request.name is not None:
        collection.name = request.name

    _commit(db, "update collection")
    db.refresh(collection)
    return collection


@router.delete("/collections/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collection = _get_owned_collection(db, collection_id, current_user.id)
    db.delete(collection)
    _commit(db, "delete collection")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/collections/{collection_id}/documents", response_model=List[DocumentResponse])
async def list_collection_documents(
    collection_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _get_owned_collection(db, collection_id, current_user.id)
    return (
        db.query(Document)
        .join(document_collections, Document.id == document_collections.c.document_id)
        .filter(document_collections.c.collection_id == collection_id, Document.user_id == current_user.id)
        .order_by(Document.created_at.desc())
        .all()
    )


@router.post("/collections/{collection_id}/documents/{document_id}", status_code=status.HTTP_201_CREATED)
async def add_document_to_collection(
    collection_id: str,
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collection = _get_owned_collection(db, collection_id, current_user.id)
    document = (
        db.query(Document)
        .filter(Document.id == document_id, Document.user_id == current_user.id)
        .one_or_none()
    )
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    if document not in collection.documents:
        collection.documents.append(document)
        _commit(db, "add document to collection")
    return Response(status_code=status.HTTP_201_CREATED)


@router.delete("/collections/{collection_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_document_from_collection(
    collection_id: str,
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collection = _get_owned_collection(db, collection_id, current_user.id)
    document = next((d for d in collection.documents if d.id == document_id), None)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not in collection")

    collection.documents.remove(document)
    _commit(db, "remove document from collection")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
