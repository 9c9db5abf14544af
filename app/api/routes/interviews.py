"""
Interview endpoints.

Scheduling, lifecycle transitions, transcript analysis, feedback and
video room assignment. Every rule lives in interview_service; the handlers
only translate between HTTP and the service.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_principal
from app.core.authorization import Principal
from app.db.models.interview import InterviewStatus, InterviewType
from app.schemas.interview import (
    InterviewCreate,
    InterviewUpdate,
    InterviewResponse,
    InterviewCreatedResponse,
    TranscriptRequest,
    TranscriptResponse,
    FeedbackRequest,
    AnalysisResponse,
    RoomResponse,
    MessageResponse,
)
from app.services import interview_service
from app.services.analysis_oracle import AnalysisOracle, get_analysis_oracle
from app.services.room_provisioner import (
    RoomProvisioner,
    RoomFallbackPolicy,
    get_room_provisioner,
    get_room_fallback_policy,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interviews", tags=["Interviews"])


@router.get("", response_model=List[InterviewResponse])
def list_interviews(
    status_filter: Optional[InterviewStatus] = Query(None, alias="status", description="Filter by status"),
    type_filter: Optional[InterviewType] = Query(None, alias="type", description="Filter by interview type"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return interview_service.list_interviews(db, principal, status=status_filter, interview_type=type_filter)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=InterviewCreatedResponse)
def create_interview(
    payload: InterviewCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Schedule an interview. ADMIN or INTERVIEWER only.

    Duration must be 15-120 minutes and the start time must not be in the past.
    """
    interview = interview_service.create_interview(
        db,
        principal,
        title=payload.title,
        interview_type=payload.type,
        candidate_id=payload.candidate_id,
        interviewer_id=payload.interviewer_id,
        scheduled_at=payload.scheduled_at,
        duration=payload.duration,
    )
    return {
        "message": "Interview scheduled successfully",
        "interview": InterviewResponse.model_validate(interview),
    }


@router.get("/{interview_id}", response_model=InterviewResponse)
def get_interview(
    interview_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return interview_service.get_interview(db, principal, interview_id)


@router.patch("/{interview_id}", response_model=InterviewResponse)
def update_interview(
    interview_id: int,
    payload: InterviewUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return interview_service.update_interview(
        db,
        principal,
        interview_id,
        title=payload.title,
        scheduled_at=payload.scheduled_at,
        duration=payload.duration,
    )


@router.post("/{interview_id}/cancel", response_model=MessageResponse)
def cancel_interview(
    interview_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    interview_service.cancel_interview(db, principal, interview_id)
    return {"message": "Interview cancelled successfully"}


@router.post("/{interview_id}/complete", response_model=MessageResponse)
def complete_interview(
    interview_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    interview_service.complete_interview(db, principal, interview_id)
    return {"message": "Interview marked as completed"}


@router.post("/{interview_id}/transcript", response_model=AnalysisResponse)
def attach_transcript(
    interview_id: int,
    payload: TranscriptRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    oracle: AnalysisOracle = Depends(get_analysis_oracle)
):
    interview = interview_service.attach_transcript(db, principal, interview_id, payload.transcript, oracle)
    return {
        "message": "Transcript analyzed successfully",
        "analysis": interview.ai_analysis,
    }


@router.get("/{interview_id}/transcript", response_model=TranscriptResponse)
def get_transcript(
    interview_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    interview = interview_service.get_transcript(db, principal, interview_id)
    return {
        "transcript": interview.transcript,
        "analysis": interview.ai_analysis,
    }


@router.post("/{interview_id}/feedback", response_model=MessageResponse)
def provide_feedback(
    interview_id: int,
    payload: FeedbackRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    interview_service.provide_feedback(db, principal, interview_id, payload.feedback)
    return {"message": "Feedback submitted successfully"}


@router.post("/{interview_id}/room", response_model=RoomResponse)
def assign_room(
    interview_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    provisioner: RoomProvisioner = Depends(get_room_provisioner),
    fallback: RoomFallbackPolicy = Depends(get_room_fallback_policy)
):
    """Return the interview's video room, creating it on the first call."""
    room_id = interview_service.assign_room(db, principal, interview_id, provisioner, fallback=fallback)
    return {"room_id": room_id}
