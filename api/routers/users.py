# File: api/routers/users.py
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from api.dependencies.auth import get_current_user, get_db
from api.models.user_models import UserResponse, UpdateProfileRequest
from database.models.auth_models import User
from services.document_service import store_profile_image, remove_file
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
MAX_IMAGE_SIZE = 5 * 1024 * 1024


def _commit_user(db: Session, user: User) -> User:
    try:
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update user profile")
    return user


@router.get("/user/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/user/profile", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    current_user.username = request.username
    return _commit_user(db, current_user)


@router.post("/user/profile-image", response_model=UserResponse)
async def upload_profile_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    filename = file.filename or "unknown"
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Only JPG, PNG, and WebP images are allowed")

    data = await file.read()
    if len(data) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=400, detail="Image must be smaller than 5MB")

    await remove_file(current_user.profile_image_url)

    try:
        stored_path = await store_profile_image(data, current_user.id, ext)
    except OSError as e:
        logger.error(f"Failed to save profile image: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save file")

    current_user.profile_image_url = stored_path
    return _commit_user(db, current_user)


@router.delete("/user/profile-image", response_model=UserResponse)
async def delete_profile_image(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    await remove_file(current_user.profile_image_url)
    current_user.profile_image_url = None
    return _commit_user(db, current_user)
