"""
Admin dashboard endpoints: user directory and activity counters.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_principal
from app.core.authorization import Principal
from app.db.models.user import Role
from app.schemas.admin import ActivityCounts, UserCounts
from app.schemas.interview import MessageResponse
from app.schemas.user import UserResponse, UserCreateRequest, UserUpdateRequest, UserCreatedResponse
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserResponse])
def list_users(
    role: Optional[Role] = Query(None, description="Filter by role"),
    search: Optional[str] = Query(None, description="Search in name and email"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.list_users(db, principal, role=role, search=search)


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserCreatedResponse)
def create_user(
    payload: UserCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    user = user_service.create_user(
        db,
        principal,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return {
        "message": "User created successfully",
        "user": UserResponse.model_validate(user),
    }


# Declared before /users/{user_id} so "recent" and "count" are not parsed as ids
@router.get("/users/recent", response_model=List[UserResponse])
def recent_users(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.recent_users(db, principal)


@router.get("/users/count", response_model=UserCounts)
def user_counts(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.user_counts(db, principal)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.get_user(db, principal, user_id)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.update_user(
        db,
        principal,
        user_id,
        name=payload.name,
        email=payload.email,
        role=payload.role,
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Delete a user together with their interviews, assessments and report."""
    user_service.delete_user(db, principal, user_id)
    return {"message": "User deleted successfully"}


@router.get("/activity/count", response_model=ActivityCounts)
def activity_count(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return user_service.activity_counts(db, principal)
