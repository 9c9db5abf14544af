"""
Interview lifecycle: scheduling, cancellation, completion, transcript analysis,
feedback and room assignment.

SCHEDULED is the only non-terminal state. Status writes are compare-and-set
against the status read at the start of the operation so a concurrent change
surfaces as a StateConflictError instead of being overwritten.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.authorization import Principal, Action, ResourceOwners, authorize
from app.core.errors import NotFoundError, StateConflictError, UpstreamError, ValidationError
from app.core.lifecycle import INTERVIEW_LIFECYCLE
from app.db.models.user import Role
from app.db.models.interview import Interview, InterviewStatus, InterviewType
from app.services.analysis_oracle import AnalysisOracle
from app.services.room_provisioner import RoomProvisioner, RoomFallbackPolicy, generate_local_room_id
from app.services.user_service import get_user_with_role

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 120
# Tolerated clock skew between client and server for "now"
SCHEDULE_GRACE = timedelta(minutes=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_duration(duration) -> int:
    if isinstance(duration, bool) or not isinstance(duration, int) \
            or not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes",
            fields=["duration"],
        )
    return duration


def validate_scheduled_at(scheduled_at: datetime, now: Optional[datetime] = None) -> datetime:
    scheduled_at = _as_utc(scheduled_at)
    if scheduled_at < (now or _utcnow()) - SCHEDULE_GRACE:
        raise ValidationError("Scheduled time cannot be in the past", fields=["scheduled_at"])
    return scheduled_at


def _owners(interview: Interview) -> ResourceOwners:
    return ResourceOwners(candidate_id=interview.candidate_id, interviewer_id=interview.interviewer_id)


def _load(db: Session, interview_id: int) -> Interview:
    interview = (
        db.query(Interview)
        .options(joinedload(Interview.candidate), joinedload(Interview.interviewer))
        .filter(Interview.id == interview_id)
        .first()
    )
    if not interview:
        raise NotFoundError("Interview not found")
    return interview


def _compare_and_set(db: Session, interview: Interview, expected: InterviewStatus, **values) -> Interview:
    """Apply values only if the row still has the status we validated against."""
    updated = (
        db.query(Interview)
        .filter(Interview.id == interview.id, Interview.status == expected)
        .update(values, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise StateConflictError("Interview was modified by another request. Please reload and retry.")
    db.commit()
    db.refresh(interview)
    return interview


def create_interview(
    db: Session,
    principal: Principal,
    title: str,
    interview_type: InterviewType,
    candidate_id: int,
    interviewer_id: int,
    scheduled_at: datetime,
    duration: int,
) -> Interview:
    authorize(principal, None, Action.CREATE, "Access denied. Must be an admin or interviewer.")
    if not title or not title.strip():
        raise ValidationError("Title is required", fields=["title"])
    duration = validate_duration(duration)
    scheduled_at = validate_scheduled_at(scheduled_at)

    get_user_with_role(db, candidate_id, Role.CANDIDATE, "Candidate")
    get_user_with_role(db, interviewer_id, Role.INTERVIEWER, "Interviewer")

    interview = Interview(
        title=title.strip(),
        type=interview_type,
        status=INTERVIEW_LIFECYCLE.initial,
        scheduled_at=scheduled_at,
        duration=duration,
        candidate_id=candidate_id,
        interviewer_id=interviewer_id,
    )
    db.add(interview)
    db.commit()
    db.refresh(interview)
    logger.info(
        f"Interview scheduled: interview_id={interview.id}, type={interview_type.value}, "
        f"candidate_id={candidate_id}, interviewer_id={interviewer_id}, by user_id={principal.id}"
    )
    return interview


def list_interviews(
    db: Session,
    principal: Principal,
    status: Optional[InterviewStatus] = None,
    interview_type: Optional[InterviewType] = None,
) -> List[Interview]:
    """Candidates see their own, interviewers see assigned ones, admins see all."""
    query = db.query(Interview).options(joinedload(Interview.candidate), joinedload(Interview.interviewer))
    if status:
        query = query.filter(Interview.status == status)
    if interview_type:
        query = query.filter(Interview.type == interview_type)

    if principal.role == Role.CANDIDATE:
        query = query.filter(Interview.candidate_id == principal.id)
    elif principal.role == Role.INTERVIEWER:
        query = query.filter(Interview.interviewer_id == principal.id)

    return query.order_by(Interview.scheduled_at.asc(), Interview.id.asc()).all()


def get_interview(db: Session, principal: Principal, interview_id: int) -> Interview:
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.VIEW)
    return interview


def update_interview(
    db: Session,
    principal: Principal,
    interview_id: int,
    title: Optional[str] = None,
    scheduled_at: Optional[datetime] = None,
    duration: Optional[int] = None,
) -> Interview:
    """Edit title or schedule. Status is never edited here."""
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.UPDATE)
    if interview.status != InterviewStatus.SCHEDULED:
        raise StateConflictError("Only scheduled interviews can be edited")

    values = {}
    if title is not None:
        if not title.strip():
            raise ValidationError("Title is required", fields=["title"])
        values["title"] = title.strip()
    if duration is not None:
        values["duration"] = validate_duration(duration)
    if scheduled_at is not None:
        values["scheduled_at"] = validate_scheduled_at(scheduled_at)
    if not values:
        return interview

    return _compare_and_set(db, interview, InterviewStatus.SCHEDULED, **values)


def cancel_interview(db: Session, principal: Principal, interview_id: int) -> Interview:
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.CANCEL)
    current = interview.status
    INTERVIEW_LIFECYCLE.ensure(
        current, InterviewStatus.CANCELLED, "Cannot cancel an interview that is not scheduled"
    )
    _compare_and_set(db, interview, current, status=InterviewStatus.CANCELLED)
    logger.info(f"Interview cancelled: interview_id={interview_id}, by user_id={principal.id}")
    return interview


def complete_interview(db: Session, principal: Principal, interview_id: int) -> Interview:
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.COMPLETE)
    current = interview.status
    if current == InterviewStatus.COMPLETED:
        raise StateConflictError("Interview is already completed")
    INTERVIEW_LIFECYCLE.ensure(current, InterviewStatus.COMPLETED, "Cannot complete a cancelled interview")
    _compare_and_set(db, interview, current, status=InterviewStatus.COMPLETED)
    logger.info(f"Interview completed: interview_id={interview_id}, by user_id={principal.id}")
    return interview


def attach_transcript(
    db: Session,
    principal: Principal,
    interview_id: int,
    transcript: Optional[str],
    oracle: AnalysisOracle,
) -> Interview:
    """
    Analyze the transcript and store transcript + analysis together.

    The oracle runs before anything is written, so an UpstreamError leaves
    the interview untouched.
    """
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.ATTACH_TRANSCRIPT)
    if not transcript or not transcript.strip():
        raise ValidationError("Transcript is required", fields=["transcript"])

    analysis = oracle.analyze_transcript(transcript, interview.type)

    interview.transcript = transcript
    interview.ai_analysis = analysis.model_dump(mode="json")
    db.commit()
    db.refresh(interview)
    logger.info(f"Transcript analyzed: interview_id={interview_id}, overall_score={analysis.overall_score}")
    return interview


def get_transcript(db: Session, principal: Principal, interview_id: int) -> Interview:
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.VIEW)
    if not interview.transcript:
        raise NotFoundError("Transcript not available")
    return interview


def provide_feedback(db: Session, principal: Principal, interview_id: int, feedback: Optional[str]) -> Interview:
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.PROVIDE_FEEDBACK)
    if interview.status != InterviewStatus.COMPLETED:
        raise StateConflictError("Cannot provide feedback for an interview that is not completed")
    if not feedback or not feedback.strip():
        raise ValidationError("Feedback is required", fields=["feedback"])

    interview.feedback = feedback.strip()
    db.commit()
    db.refresh(interview)
    logger.info(f"Interview feedback saved: interview_id={interview_id}, by user_id={principal.id}")
    return interview


def assign_room(
    db: Session,
    principal: Principal,
    interview_id: int,
    provisioner: RoomProvisioner,
    fallback: RoomFallbackPolicy = RoomFallbackPolicy.DEGRADE,
) -> str:
    """
    Return the interview's room id, provisioning one on first request.

    At most one room is ever stored: the write only succeeds while room_id is
    still NULL, and a loser of that race returns the winner's room.
    """
    interview = _load(db, interview_id)
    authorize(principal, _owners(interview), Action.JOIN)
    if interview.room_id:
        return interview.room_id

    try:
        room_id = provisioner.create_room(interview.id)
    except UpstreamError:
        if fallback != RoomFallbackPolicy.DEGRADE:
            raise
        room_id = generate_local_room_id()
        logger.warning(f"Room provisioning failed, using local room id: interview_id={interview_id}, room_id={room_id}")

    updated = (
        db.query(Interview)
        .filter(Interview.id == interview.id, Interview.room_id.is_(None))
        .update({"room_id": room_id}, synchronize_session=False)
    )
    db.commit()
    db.refresh(interview)
    if updated:
        logger.info(f"Room assigned: interview_id={interview_id}, room_id={room_id}")
    return interview.room_id
