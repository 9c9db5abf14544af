"""
CodingAssessment model: a take-home coding task assigned to one candidate.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Float, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class AssessmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"


class CodingAssessment(Base):
    __tablename__ = "coding_assessments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    status = Column(Enum(AssessmentStatus), nullable=False, default=AssessmentStatus.PENDING, index=True)

    code_submission = Column(Text, nullable=True)
    ai_analysis = Column(JSON(none_as_null=True), nullable=True)
    score = Column(Float, nullable=True)  # 0-100
    feedback = Column(Text, nullable=True)

    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL means nobody has claimed the review yet
    reviewer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    candidate = relationship("User", foreign_keys=[candidate_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])

    def __repr__(self):
        return f"<CodingAssessment(id={self.id}, status='{self.status}', reviewer_id={self.reviewer_id})>"
