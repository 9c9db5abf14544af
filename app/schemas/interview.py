"""
Pydantic schemas for interview endpoints.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.interview import InterviewType, InterviewStatus
from app.schemas.user import UserSummary


class InterviewCreate(BaseModel):
    """Schema for scheduling a new interview. Range checks happen in the service."""
    title: str = Field(..., min_length=1, max_length=255, description="Interview title")
    type: InterviewType = Field(..., description="TECHNICAL or MANAGERIAL")
    candidate_id: int = Field(..., description="User ID of the candidate")
    interviewer_id: int = Field(..., description="User ID of the interviewer")
    scheduled_at: datetime = Field(..., description="Start time (ISO 8601)")
    duration: int = Field(..., description="Length in minutes (15-120)")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Backend technical round",
                "type": "TECHNICAL",
                "candidate_id": 3,
                "interviewer_id": 2,
                "scheduled_at": "2026-11-02T15:00:00Z",
                "duration": 60
            }
        }


class InterviewUpdate(BaseModel):
    """Editable fields while an interview is still SCHEDULED."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = None


class TranscriptRequest(BaseModel):
    transcript: Optional[str] = Field(None, description="Full interview transcript")


class FeedbackRequest(BaseModel):
    feedback: Optional[str] = Field(None, description="Interviewer feedback")


class InterviewResponse(BaseModel):
    id: int
    title: str
    type: InterviewType
    status: InterviewStatus
    scheduled_at: datetime
    duration: int
    candidate_id: int
    interviewer_id: int
    room_id: Optional[str] = None
    transcript: Optional[str] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    feedback: Optional[str] = None
    created_at: datetime
    candidate: Optional[UserSummary] = None
    interviewer: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class InterviewCreatedResponse(BaseModel):
    message: str
    interview: InterviewResponse


class TranscriptResponse(BaseModel):
    transcript: str
    analysis: Optional[Dict[str, Any]] = None


class AnalysisResponse(BaseModel):
    message: str
    analysis: Dict[str, Any]


class RoomResponse(BaseModel):
    room_id: str


class MessageResponse(BaseModel):
    message: str
