"""
Tests for the losing side of concurrent writes.

A competing update is committed between a service's read and its conditional
write; the service must report a state conflict and leave the winner's data.
"""
import pytest

from app.core.authorization import Principal
from app.core.errors import StateConflictError
from app.core.lifecycle import ASSESSMENT_LIFECYCLE, INTERVIEW_LIFECYCLE
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.interview import Interview, InterviewStatus
from app.services import assessment_service, interview_service

ANALYSIS = {"overall_score": 55, "summary": "Other submission.", "recommendation": "BORDERLINE"}


def _principal(user):
    return Principal(id=user.id, role=user.role)


def _commit_after_ensure(monkeypatch, machine, db, model, row_id, values):
    """Make machine.ensure commit `values` to the row right after its check passes."""
    original = machine.ensure

    def ensure_then_compete(current, target, message=None):
        original(current, target, message)
        db.query(model).filter(model.id == row_id).update(values, synchronize_session=False)
        db.commit()

    monkeypatch.setattr(machine, "ensure", ensure_then_compete)


def test_cancel_loses_to_concurrent_completion(monkeypatch, db_session, candidate, interviewer, make_interview):
    interview = make_interview(candidate, interviewer)
    _commit_after_ensure(
        monkeypatch, INTERVIEW_LIFECYCLE, db_session, Interview, interview.id,
        {"status": InterviewStatus.COMPLETED},
    )

    with pytest.raises(StateConflictError) as exc_info:
        interview_service.cancel_interview(db_session, _principal(interviewer), interview.id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.to_dict()["code"] == "state_conflict"
    assert exc_info.value.message == "Interview was modified by another request. Please reload and retry."
    db_session.expire_all()
    assert db_session.get(Interview, interview.id).status == InterviewStatus.COMPLETED


def test_submit_loses_to_concurrent_submission(monkeypatch, db_session, oracle, candidate, make_assessment):
    assessment = make_assessment(candidate)
    _commit_after_ensure(
        monkeypatch, ASSESSMENT_LIFECYCLE, db_session, CodingAssessment, assessment.id,
        {"status": AssessmentStatus.SUBMITTED, "code_submission": "first()", "ai_analysis": ANALYSIS},
    )

    with pytest.raises(StateConflictError) as exc_info:
        assessment_service.submit_assessment(db_session, _principal(candidate), assessment.id, "second()", oracle)

    assert exc_info.value.to_dict()["code"] == "state_conflict"
    db_session.expire_all()
    stored = db_session.get(CodingAssessment, assessment.id)
    assert stored.status == AssessmentStatus.SUBMITTED
    assert stored.code_submission == "first()"
    assert stored.ai_analysis == ANALYSIS


def test_review_loses_to_concurrent_review(
    monkeypatch, db_session, candidate, interviewer, other_interviewer, make_assessment
):
    assessment = make_assessment(
        candidate, status=AssessmentStatus.SUBMITTED, code_submission="x", ai_analysis=ANALYSIS
    )
    _commit_after_ensure(
        monkeypatch, ASSESSMENT_LIFECYCLE, db_session, CodingAssessment, assessment.id,
        {
            "status": AssessmentStatus.REVIEWED,
            "reviewer_id": other_interviewer.id,
            "score": 40,
            "feedback": "Needs work",
        },
    )

    with pytest.raises(StateConflictError) as exc_info:
        assessment_service.review_assessment(db_session, _principal(interviewer), assessment.id, 90, "Great")

    assert exc_info.value.message == "Assessment was reviewed by someone else in the meantime. Please reload."
    db_session.expire_all()
    stored = db_session.get(CodingAssessment, assessment.id)
    assert stored.reviewer_id == other_interviewer.id
    assert stored.score == 40
    assert stored.feedback == "Needs work"
