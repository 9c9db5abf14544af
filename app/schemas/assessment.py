"""
Pydantic schemas for coding assessment endpoints.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.coding_assessment import AssessmentStatus
from app.schemas.user import UserSummary


class AssessmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    requirements: str = Field(..., min_length=1)
    candidate_id: int = Field(..., description="User ID of the candidate")


class SubmitRequest(BaseModel):
    code: Optional[str] = Field(None, description="Source code of the solution")


class ReviewRequest(BaseModel):
    score: Optional[float] = Field(None, description="Score 0-100")
    feedback: Optional[str] = None


class AssessmentResponse(BaseModel):
    """Full assessment. Candidates get it without ai_analysis until it is REVIEWED."""
    id: int
    title: str
    description: str
    requirements: str
    status: AssessmentStatus
    code_submission: Optional[str] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    score: Optional[float] = None
    feedback: Optional[str] = None
    candidate_id: int
    reviewer_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    candidate: Optional[UserSummary] = None
    reviewer: Optional[UserSummary] = None

    class Config:
        from_attributes = True
