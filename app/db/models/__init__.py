"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.
"""
from app.db.models.user import User, Role
from app.db.models.interview import Interview, InterviewType, InterviewStatus
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.final_report import FinalReport, Recommendation

__all__ = [
    "User",
    "Role",
    "Interview",
    "InterviewType",
    "InterviewStatus",
    "CodingAssessment",
    "AssessmentStatus",
    "FinalReport",
    "Recommendation",
]
