import logging
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt
from app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Raises:
        ValueError: If password cannot be hashed
    """
    try:
        return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")
    except (ValueError, TypeError) as e:
        logger.error(f"Password hashing failed: {type(e).__name__}")
        raise ValueError("Invalid password") from e


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification failed: {e}")
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """JWT carrying the user's email as "sub". Roles are never put in the token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises jose.JWTError for bad signatures, malformed or expired tokens."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
