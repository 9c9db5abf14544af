"""
Final report endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_principal
from app.core.authorization import Principal
from app.schemas.report import ReportGenerateRequest, FinalReportResponse
from app.services import report_service
from app.services.analysis_oracle import AnalysisOracle, get_analysis_oracle

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("/{candidate_id}/generate", response_model=FinalReportResponse)
def generate_report(
    candidate_id: int,
    payload: ReportGenerateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    oracle: AnalysisOracle = Depends(get_analysis_oracle)
):
    """
    Generate (or regenerate) a candidate's final report. ADMIN only.

    Analyses missing from the body are read from the candidate's stored
    interviews and assessments.
    """
    return report_service.generate_report(
        db,
        principal,
        candidate_id,
        technical=payload.technical_interview,
        coding=payload.coding_assessment,
        managerial=payload.managerial_interview,
        oracle=oracle,
    )


@router.get("/{candidate_id}", response_model=FinalReportResponse)
def get_report(
    candidate_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return report_service.get_report(db, principal, candidate_id)
