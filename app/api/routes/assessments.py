"""
Coding assessment endpoints.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_principal
from app.core.authorization import Principal
from app.db.models.coding_assessment import AssessmentStatus
from app.schemas.assessment import AssessmentCreate, SubmitRequest, ReviewRequest
from app.schemas.interview import AnalysisResponse
from app.services import assessment_service
from app.services.analysis_oracle import AnalysisOracle, get_analysis_oracle

router = APIRouter(prefix="/assessments", tags=["Assessments"])


@router.get("", response_model=List[Dict[str, Any]])
def list_assessments(
    status_filter: Optional[AssessmentStatus] = Query(None, alias="status", description="Filter by status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    assessments = assessment_service.list_assessments(db, principal, status=status_filter)
    return [assessment_service.serialize_assessment(a, principal) for a in assessments]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: AssessmentCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    assessment = assessment_service.create_assessment(
        db,
        principal,
        title=payload.title,
        description=payload.description,
        requirements=payload.requirements,
        candidate_id=payload.candidate_id,
    )
    return {
        "message": "Assessment created successfully",
        "assessment": assessment_service.serialize_assessment(assessment, principal),
    }


# Response shape depends on the caller, so no response_model here
@router.get("/{assessment_id}")
def get_assessment(
    assessment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    assessment = assessment_service.get_assessment(db, principal, assessment_id)
    return assessment_service.serialize_assessment(assessment, principal)


@router.post("/{assessment_id}/submit", response_model=AnalysisResponse)
def submit_assessment(
    assessment_id: int,
    payload: SubmitRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    oracle: AnalysisOracle = Depends(get_analysis_oracle)
):
    """Submit code. The candidate gets the analysis back once, in this response."""
    assessment = assessment_service.submit_assessment(db, principal, assessment_id, payload.code, oracle)
    return {
        "message": "Assessment submitted successfully",
        "analysis": assessment.ai_analysis,
    }


@router.post("/{assessment_id}/review")
def review_assessment(
    assessment_id: int,
    payload: ReviewRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    assessment = assessment_service.review_assessment(
        db, principal, assessment_id, score=payload.score, feedback=payload.feedback
    )
    return {
        "message": "Assessment reviewed successfully",
        "assessment": assessment_service.serialize_assessment(assessment, principal),
    }
