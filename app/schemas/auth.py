"""
Pydantic schemas for authentication endpoints.
"""
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator

BCRYPT_MAX_BYTES = 72
NAME_MIN_LENGTH = 2


def check_password_bytes(v: str) -> str:
    """bcrypt only looks at the first 72 bytes, so longer passwords are rejected."""
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError("Password must be 72 bytes or fewer")
    return v


def check_name(v: str) -> str:
    """Strip surrounding whitespace; the stripped name must still be long enough."""
    v = v.strip()
    if len(v) < NAME_MIN_LENGTH:
        raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters")
    return v


class RegisterRequest(BaseModel):
    """Request schema for self-registration. Admin accounts cannot be self-registered."""
    name: str = Field(..., min_length=2, max_length=200, description="User's full name")
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=6, description="User's password (min 6 characters)")
    role: Literal["CANDIDATE", "INTERVIEWER"] = Field(..., description="Requested role")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return check_password_bytes(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jane Doe",
                "email": "jane.doe@example.com",
                "password": "SecurePass123",
                "role": "CANDIDATE"
            }
        }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
