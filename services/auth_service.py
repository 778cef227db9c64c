# services/auth_service.py
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict

from jose import jwt

ALGORITHM = "HS256"
TOKEN_EXPIRE_HOURS = 24
PBKDF2_ITERATIONS = 390000


def hash_password(password: str) -> str:
    """Salted PBKDF2-SHA256, stored as `pbkdf2_sha256$iterations$salt$hash`."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    if scheme != "pbkdf2_sha256":
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def create_access_token(user_id: str, email: str, secret: str) -> str:
    expire = datetime.utcnow() + timedelta(hours=TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": user_id,
        "email": email,
        "exp": expire
    }
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> Dict[str, Any]:
    """Raises jose.JWTError on a bad signature or an expired token."""
    return jwt.decode(token, secret, algorithms=[ALGORITHM])
