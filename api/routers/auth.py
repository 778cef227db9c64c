from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from database.models.auth_models import User
from api.dependencies.auth import get_db, SECRET_KEY
from api.models.user_models import RegisterRequest, LoginRequest, AuthResponse, UserResponse
from services.auth_service import hash_password, verify_password, create_access_token
import logging
import hashlib
import uuid

# Configure logger
logger = logging.getLogger(__name__)


def _get_email_hash(email: str) -> str:
    """Returns SHA-256 hash of the email for secure logging."""
    return hashlib.sha256(email.lower().strip().encode("utf-8")).hexdigest()


router = APIRouter()


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(user.id, user.email, SECRET_KEY)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(request: RegisterRequest, db: Session = Depends(get_db)):
    email = request.email.lower().strip()
    logger.info(f"Registering account for: {_get_email_hash(email)}")

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already exists")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(request.password),
        username=request.username,
        created_at=datetime.utcnow()
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already exists")
    except Exception as e:
        logger.error(f"Error creating user: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create user")

    logger.info(f"USER_REGISTER user_id={user.id}")
    return _auth_response(user)


@router.post("/auth/login", response_model=AuthResponse)
async def login_user(request: LoginRequest, db: Session = Depends(get_db)):
    email = request.email.lower().strip()
    logger.info(f"Attempting login for: {_get_email_hash(email)}")

    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    logger.info(f"USER_LOGIN user_id={user.id}")
    return _auth_response(user)
