"""
FinalReport model: the composite hiring report, at most one per candidate.
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Float, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class Recommendation(str, enum.Enum):
    STRONG_HIRE = "STRONG_HIRE"
    HIRE = "HIRE"
    CONSIDER = "CONSIDER"
    REJECT = "REJECT"


class FinalReport(Base):
    __tablename__ = "final_reports"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    interview_score = Column(Float, nullable=False)
    coding_score = Column(Float, nullable=False)
    managerial_score = Column(Float, nullable=False)
    overall_rating = Column(Float, nullable=False)

    strengths = Column(JSON, nullable=False, default=list)
    weaknesses = Column(JSON, nullable=False, default=list)
    recommendation = Column(Enum(Recommendation), nullable=False)
    suggested_hike = Column(Float, nullable=True)  # percent

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    candidate = relationship("User")

    def __repr__(self):
        return f"<FinalReport(candidate_id={self.candidate_id}, recommendation='{self.recommendation}')>"
