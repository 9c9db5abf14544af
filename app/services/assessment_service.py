"""
Coding assessment lifecycle: PENDING -> SUBMITTED -> REVIEWED.

Submissions are analyzed before anything is written and then stored together
with the status change in one conditional UPDATE. Reviews are a
read-then-conditionally-write against the reviewer observed immediately
before the write.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from app.core.authorization import Principal, Action, ResourceOwners, authorize
from app.core.errors import NotFoundError, StateConflictError, ValidationError
from app.core.lifecycle import ASSESSMENT_LIFECYCLE
from app.db.models.user import Role
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.schemas.assessment import AssessmentResponse
from app.services.analysis_oracle import AnalysisOracle
from app.services.user_service import get_user_with_role

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100


def _owners(assessment: CodingAssessment) -> ResourceOwners:
    return ResourceOwners(
        candidate_id=assessment.candidate_id,
        reviewer_id=assessment.reviewer_id,
        claimable=assessment.status == AssessmentStatus.SUBMITTED and assessment.reviewer_id is None,
    )


def _load(db: Session, assessment_id: int) -> CodingAssessment:
    assessment = (
        db.query(CodingAssessment)
        .options(joinedload(CodingAssessment.candidate), joinedload(CodingAssessment.reviewer))
        .filter(CodingAssessment.id == assessment_id)
        .first()
    )
    if not assessment:
        raise NotFoundError("Assessment not found")
    return assessment


def serialize_assessment(assessment: CodingAssessment, principal: Principal) -> Dict[str, Any]:
    """Candidates only see the AI analysis of their own work once it is REVIEWED."""
    payload = AssessmentResponse.model_validate(assessment).model_dump(mode="json")
    if principal.role == Role.CANDIDATE and assessment.status != AssessmentStatus.REVIEWED:
        payload.pop("ai_analysis", None)
    return payload


def create_assessment(
    db: Session,
    principal: Principal,
    title: str,
    description: str,
    requirements: str,
    candidate_id: int,
) -> CodingAssessment:
    authorize(principal, None, Action.CREATE, "Access denied. Must be an admin or interviewer.")
    missing = [
        name for name, value in (("title", title), ("description", description), ("requirements", requirements))
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    get_user_with_role(db, candidate_id, Role.CANDIDATE, "Candidate")

    assessment = CodingAssessment(
        title=title.strip(),
        description=description,
        requirements=requirements,
        status=ASSESSMENT_LIFECYCLE.initial,
        candidate_id=candidate_id,
    )
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    logger.info(f"Assessment created: assessment_id={assessment.id}, candidate_id={candidate_id}, by user_id={principal.id}")
    return assessment


def list_assessments(
    db: Session,
    principal: Principal,
    status: Optional[AssessmentStatus] = None,
) -> List[CodingAssessment]:
    """
    Candidates see their own. Interviewers see what they reviewed plus every
    unclaimed submission. Admins see everything.
    """
    query = db.query(CodingAssessment).options(
        joinedload(CodingAssessment.candidate), joinedload(CodingAssessment.reviewer)
    )
    if status:
        query = query.filter(CodingAssessment.status == status)

    if principal.role == Role.CANDIDATE:
        query = query.filter(CodingAssessment.candidate_id == principal.id)
    elif principal.role == Role.INTERVIEWER:
        query = query.filter(or_(
            CodingAssessment.reviewer_id == principal.id,
            and_(
                CodingAssessment.reviewer_id.is_(None),
                CodingAssessment.status == AssessmentStatus.SUBMITTED,
            ),
        ))

    return query.order_by(CodingAssessment.created_at.desc(), CodingAssessment.id.desc()).all()


def get_assessment(db: Session, principal: Principal, assessment_id: int) -> CodingAssessment:
    assessment = _load(db, assessment_id)
    authorize(principal, _owners(assessment), Action.VIEW)
    return assessment


def submit_assessment(
    db: Session,
    principal: Principal,
    assessment_id: int,
    code: Optional[str],
    oracle: AnalysisOracle,
) -> CodingAssessment:
    """
    Analyze the candidate's code, then store code, analysis and SUBMITTED in
    one UPDATE. If the oracle fails nothing is written.
    """
    assessment = _load(db, assessment_id)
    authorize(principal, _owners(assessment), Action.SUBMIT)
    ASSESSMENT_LIFECYCLE.ensure(
        assessment.status, AssessmentStatus.SUBMITTED, "Assessment has already been submitted"
    )
    if not code or not code.strip():
        raise ValidationError("Code submission is required", fields=["code"])

    analysis = oracle.analyze_code(code, assessment.requirements)

    updated = (
        db.query(CodingAssessment)
        .filter(CodingAssessment.id == assessment.id, CodingAssessment.status == AssessmentStatus.PENDING)
        .update(
            {
                "code_submission": code,
                "ai_analysis": analysis.model_dump(mode="json"),
                "status": AssessmentStatus.SUBMITTED,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise StateConflictError("Assessment has already been submitted")
    db.commit()
    db.refresh(assessment)
    logger.info(f"Assessment submitted: assessment_id={assessment_id}, overall_score={analysis.overall_score}")
    return assessment


def _validate_review(score: Optional[float], feedback: Optional[str]) -> None:
    missing = []
    if score is None:
        missing.append("score")
    if not feedback or not feedback.strip():
        missing.append("feedback")
    if missing:
        raise ValidationError("Score and feedback are required", fields=missing)
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(f"Score must be between {MIN_SCORE} and {MAX_SCORE}", fields=["score"])


def review_assessment(
    db: Session,
    principal: Principal,
    assessment_id: int,
    score: Optional[float],
    feedback: Optional[str],
) -> CodingAssessment:
    """
    Record a review. A REVIEWED assessment can only be re-reviewed by its
    reviewer, except that an admin may override any reviewer.
    """
    authorize(principal, None, Action.REVIEW, "Access denied. Must be an interviewer or admin.")
    # Fresh read right before the write; stale page state is never trusted
    assessment = (
        db.query(CodingAssessment)
        .populate_existing()
        .with_for_update()
        .filter(CodingAssessment.id == assessment_id)
        .first()
    )
    if not assessment:
        raise NotFoundError("Assessment not found")
    authorize(principal, _owners(assessment), Action.REVIEW, "Access denied. Must be an interviewer or admin.")

    observed_status = assessment.status
    observed_reviewer = assessment.reviewer_id
    if (
        observed_status == AssessmentStatus.REVIEWED
        and observed_reviewer is not None
        and observed_reviewer != principal.id
        and not principal.is_admin
    ):
        raise StateConflictError("Assessment has already been reviewed by another interviewer")
    ASSESSMENT_LIFECYCLE.ensure(
        observed_status, AssessmentStatus.REVIEWED, "Assessment has not been submitted yet"
    )
    _validate_review(score, feedback)

    reviewer_unchanged = (
        CodingAssessment.reviewer_id.is_(None)
        if observed_reviewer is None
        else CodingAssessment.reviewer_id == observed_reviewer
    )
    updated = (
        db.query(CodingAssessment)
        .filter(
            CodingAssessment.id == assessment_id,
            CodingAssessment.status == observed_status,
            reviewer_unchanged,
        )
        .update(
            {
                "score": float(score),
                "feedback": feedback.strip(),
                "reviewer_id": principal.id,
                "status": AssessmentStatus.REVIEWED,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise StateConflictError("Assessment was reviewed by someone else in the meantime. Please reload.")
    db.commit()
    db.refresh(assessment)

    if observed_reviewer is not None and observed_reviewer != principal.id:
        logger.warning(
            f"Review overridden by admin: assessment_id={assessment_id}, "
            f"previous_reviewer_id={observed_reviewer}, admin_id={principal.id}"
        )
    logger.info(f"Assessment reviewed: assessment_id={assessment_id}, reviewer_id={principal.id}, score={score}")
    return assessment
