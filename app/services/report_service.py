"""
Final report composer.

Validates that all three analyses exist, hands them to the Analysis Oracle and
upserts the result keyed by candidate. Regeneration overwrites every field.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.authorization import Principal, Action, ResourceOwners, authorize
from app.core.errors import NotFoundError, ValidationError
from app.db.models.user import Role
from app.db.models.interview import Interview, InterviewType
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.final_report import FinalReport
from app.services.analysis_oracle import AnalysisOracle, FinalReportAnalysis
from app.services.user_service import get_user_with_role

logger = logging.getLogger(__name__)


def latest_interview_analysis(db: Session, candidate_id: int, interview_type: InterviewType) -> Optional[Dict[str, Any]]:
    interview = (
        db.query(Interview)
        .filter(
            Interview.candidate_id == candidate_id,
            Interview.type == interview_type,
            Interview.ai_analysis.isnot(None),
        )
        .order_by(Interview.updated_at.desc(), Interview.id.desc())
        .first()
    )
    return interview.ai_analysis if interview else None


def latest_coding_analysis(db: Session, candidate_id: int) -> Optional[Dict[str, Any]]:
    assessment = (
        db.query(CodingAssessment)
        .filter(
            CodingAssessment.candidate_id == candidate_id,
            CodingAssessment.status.in_([AssessmentStatus.SUBMITTED, AssessmentStatus.REVIEWED]),
            CodingAssessment.ai_analysis.isnot(None),
        )
        .order_by(CodingAssessment.updated_at.desc(), CodingAssessment.id.desc())
        .first()
    )
    return assessment.ai_analysis if assessment else None


def _apply(report: FinalReport, result: FinalReportAnalysis) -> None:
    report.interview_score = result.technical_score
    report.coding_score = result.coding_score
    report.managerial_score = result.managerial_score
    report.overall_rating = result.overall_rating
    report.strengths = list(result.strengths)
    report.weaknesses = list(result.weaknesses)
    report.recommendation = result.recommendation
    report.suggested_hike = result.suggested_hike


def _upsert(db: Session, candidate_id: int, result: FinalReportAnalysis) -> FinalReport:
    report = db.query(FinalReport).filter(FinalReport.candidate_id == candidate_id).first()
    created = report is None
    if created:
        report = FinalReport(candidate_id=candidate_id)
        db.add(report)
    _apply(report, result)
    try:
        db.commit()
    except IntegrityError:
        # Another request created the row first; overwrite it instead
        db.rollback()
        report = db.query(FinalReport).filter(FinalReport.candidate_id == candidate_id).one()
        _apply(report, result)
        db.commit()
        created = False
    db.refresh(report)
    logger.info(
        f"Final report {'created' if created else 'regenerated'}: candidate_id={candidate_id}, "
        f"recommendation={report.recommendation.value}, overall_rating={report.overall_rating}"
    )
    return report


def generate_report(
    db: Session,
    principal: Principal,
    candidate_id: int,
    technical: Optional[Dict[str, Any]],
    coding: Optional[Dict[str, Any]],
    managerial: Optional[Dict[str, Any]],
    oracle: AnalysisOracle,
) -> FinalReport:
    """
    Compose and upsert a candidate's final report.

    Analyses not supplied by the caller are taken from the candidate's most
    recent stored analyses. If any of the three is still missing, nothing is
    written.
    """
    authorize(principal, None, Action.GENERATE_REPORT, "Access denied. Must be an admin.")
    get_user_with_role(db, candidate_id, Role.CANDIDATE, "Candidate")

    analyses = {
        "technical_interview": technical or latest_interview_analysis(db, candidate_id, InterviewType.TECHNICAL),
        "coding_assessment": coding or latest_coding_analysis(db, candidate_id),
        "managerial_interview": managerial or latest_interview_analysis(db, candidate_id, InterviewType.MANAGERIAL),
    }
    missing = [name for name, analysis in analyses.items() if not analysis]
    if missing:
        raise ValidationError(f"Missing required assessment data: {', '.join(missing)}", fields=missing)

    result = oracle.compose_final_report(
        analyses["technical_interview"],
        analyses["coding_assessment"],
        analyses["managerial_interview"],
    )
    return _upsert(db, candidate_id, result)


def get_report(db: Session, principal: Principal, candidate_id: int) -> FinalReport:
    authorize(principal, ResourceOwners(candidate_id=candidate_id), Action.VIEW_REPORT)
    report = db.query(FinalReport).filter(FinalReport.candidate_id == candidate_id).first()
    if not report:
        raise NotFoundError("Report not found")
    return report
