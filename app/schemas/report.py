"""
Pydantic schemas for final report endpoints.
"""
from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.final_report import Recommendation


class ReportGenerateRequest(BaseModel):
    """Any analysis left out is taken from the candidate's stored records."""
    technical_interview: Optional[Dict[str, Any]] = Field(None, description="Technical interview AI analysis")
    coding_assessment: Optional[Dict[str, Any]] = Field(None, description="Coding assessment AI analysis")
    managerial_interview: Optional[Dict[str, Any]] = Field(None, description="Managerial interview AI analysis")


class FinalReportResponse(BaseModel):
    id: int
    candidate_id: int
    interview_score: float
    coding_score: float
    managerial_score: float
    overall_rating: float
    strengths: List[str]
    weaknesses: List[str]
    recommendation: Recommendation
    suggested_hike: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
