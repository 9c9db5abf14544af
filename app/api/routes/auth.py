import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.core.errors import AuthenticationError
from app.core.logging_config import sanitize_log_data
from app.core.security import create_access_token
from app.db.models.user import User, Role
from app.schemas.auth import RegisterRequest, TokenResponse
from app.schemas.user import UserCreatedResponse, UserResponse
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserCreatedResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    logger.debug(f"Registration attempt: {sanitize_log_data(payload.model_dump())}")
    user = user_service.register_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role(payload.role),
    )
    return {
        "message": "User registered successfully",
        "user": UserResponse.model_validate(user),
    }


# Swagger sends "username", we treat it as email
@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    user = user_service.authenticate(db, form_data.username, form_data.password)
    if not user:
        logger.info("Login failed: invalid credentials")
        raise AuthenticationError("Invalid credentials")

    token = create_access_token({"sub": user.email})
    return {
        "access_token": token,
        "token_type": "bearer"
    }


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user_obj)):
    return user
