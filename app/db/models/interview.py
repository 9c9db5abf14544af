"""
Interview model: a scheduled video interview between one candidate and one interviewer.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class InterviewType(str, enum.Enum):
    TECHNICAL = "TECHNICAL"
    MANAGERIAL = "MANAGERIAL"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    type = Column(Enum(InterviewType), nullable=False, index=True)
    status = Column(Enum(InterviewStatus), nullable=False, default=InterviewStatus.SCHEDULED, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # minutes

    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    interviewer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Assigned on first join, never changed afterwards
    room_id = Column(String, nullable=True)

    # transcript and ai_analysis are always written together
    transcript = Column(Text, nullable=True)
    ai_analysis = Column(JSON(none_as_null=True), nullable=True)
    feedback = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    candidate = relationship("User", foreign_keys=[candidate_id])
    interviewer = relationship("User", foreign_keys=[interviewer_id])

    __table_args__ = (
        Index("idx_interview_candidate_type", "candidate_id", "type"),
    )

    def __repr__(self):
        return f"<Interview(id={self.id}, type='{self.type}', status='{self.status}')>"
