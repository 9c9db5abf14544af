"""
Pydantic schemas for admin dashboard endpoints.
"""
from pydantic import BaseModel


class ActivityCounts(BaseModel):
    pending_interviews: int
    completed_interviews: int
    pending_assessments: int
    completed_assessments: int


class UserCounts(BaseModel):
    candidates: int
    interviewers: int
    admins: int
