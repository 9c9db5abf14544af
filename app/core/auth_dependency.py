from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session
from app.core.security import decode_access_token
from app.core.errors import AuthenticationError
from app.core.authorization import Principal
from app.db.session import SessionLocal
from app.db.models.user import User

# auto_error=False so a missing token surfaces as our own AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """Get current user email from JWT token."""
    if not token:
        raise AuthenticationError()
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise AuthenticationError("Invalid token")

    email: Optional[str] = payload.get("sub")
    if email is None:
        raise AuthenticationError("Invalid token")
    return email


def get_current_user_obj(
    email: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Get current User object from JWT token."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        # Deleted since the token was issued; do not reveal anything else
        raise AuthenticationError()
    return user


def get_current_principal(user: User = Depends(get_current_user_obj)) -> Principal:
    """Resolve the request's principal from the persisted user, never from token claims."""
    return Principal(id=user.id, role=user.role)
