"""
Pydantic schemas for user endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.db.models.user import Role
from app.schemas.auth import check_password_bytes, check_name


class UserSummary(BaseModel):
    """Compact user reference embedded in interviews and assessments."""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User as returned by the API. Never includes the password hash."""
    id: int = Field(..., description="User ID")
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreateRequest(BaseModel):
    """Admin-side user creation; any role is allowed."""
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return check_password_bytes(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name(v)


class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else check_name(v)


class UserCreatedResponse(BaseModel):
    message: str
    user: UserResponse
