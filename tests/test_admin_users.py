"""
Integration tests for /admin: user directory, role changes, cascading deletion and counters.
"""
import pytest

from app.core.authorization import Principal
from app.core.errors import ValidationError
from app.db.models.user import User, Role
from app.db.models.interview import Interview, InterviewStatus
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.final_report import FinalReport, Recommendation
from app.services import user_service

ANALYSIS = {"overall_score": 70}


def test_delete_reviewer_keeps_reviewed_assessments(
    client, db_session, admin, candidate, interviewer, make_user, make_interview, make_assessment, auth_headers
):
    """Reviewer on 3 assessments and candidate on 1 interview."""
    reviewer = make_user(Role.INTERVIEWER, "rita")
    reviewer_id = reviewer.id
    assessment_ids = [
        make_assessment(
            candidate, status=AssessmentStatus.REVIEWED, code_submission="x", ai_analysis=ANALYSIS,
            reviewer_id=reviewer_id, score=60 + i, feedback="OK",
        ).id
        for i in range(3)
    ]
    interview_id = make_interview(reviewer, interviewer).id
    headers = auth_headers(admin)

    response = client.delete(f"/admin/users/{reviewer_id}", headers=headers)

    assert response.status_code == 200
    db_session.expire_all()
    assessments = db_session.query(CodingAssessment).filter(CodingAssessment.id.in_(assessment_ids)).all()
    assert len(assessments) == 3
    assert all(a.reviewer_id is None for a in assessments)
    assert all(a.status == AssessmentStatus.REVIEWED for a in assessments)
    assert db_session.get(Interview, interview_id) is None
    assert db_session.get(User, reviewer_id) is None


def test_delete_candidate_removes_their_records(
    client, db_session, admin, candidate, interviewer, make_interview, make_assessment, auth_headers
):
    candidate_id = candidate.id
    make_interview(candidate, interviewer)
    make_assessment(candidate)
    db_session.add(FinalReport(
        candidate_id=candidate_id, interview_score=70, coding_score=70, managerial_score=70,
        overall_rating=70, strengths=[], weaknesses=[], recommendation=Recommendation.CONSIDER,
    ))
    db_session.commit()
    headers = auth_headers(admin)

    response = client.delete(f"/admin/users/{candidate_id}", headers=headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(Interview).count() == 0
    assert db_session.query(CodingAssessment).count() == 0
    assert db_session.query(FinalReport).count() == 0
    assert db_session.query(User).filter(User.id == interviewer.id).count() == 1


def test_admin_cannot_delete_self(client, admin, auth_headers):
    response = client.delete(f"/admin/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete your own account"


def test_only_admin_deletes_users(client, interviewer, candidate, auth_headers):
    response = client.delete(f"/admin/users/{candidate.id}", headers=auth_headers(interviewer))
    assert response.status_code == 403


def test_delete_missing_user_is_404(client, admin, auth_headers):
    assert client.delete("/admin/users/999", headers=auth_headers(admin)).status_code == 404


def test_admin_creates_user_with_any_role(client, admin, auth_headers):
    response = client.post(
        "/admin/users",
        json={"name": "Second Admin", "email": "admin2@example.com", "password": "testpass123", "role": "ADMIN"},
        headers=auth_headers(admin),
    )
    duplicate = client.post(
        "/admin/users",
        json={"name": "Second Admin", "email": "admin2@example.com", "password": "testpass123", "role": "ADMIN"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert response.json()["user"]["role"] == "ADMIN"
    assert duplicate.status_code == 409


def test_list_users_with_filters(client, admin, candidate, other_candidate, interviewer, auth_headers):
    candidates = client.get("/admin/users", params={"role": "CANDIDATE"}, headers=auth_headers(interviewer))
    search = client.get("/admin/users", params={"search": "CARLA"}, headers=auth_headers(admin))
    forbidden = client.get("/admin/users", headers=auth_headers(candidate))

    assert candidates.status_code == 200
    assert {u["id"] for u in candidates.json()} == {candidate.id, other_candidate.id}
    assert [u["id"] for u in search.json()] == [candidate.id]
    assert forbidden.status_code == 403


def test_recent_users_is_admin_only(client, admin, interviewer, candidate, auth_headers):
    recent = client.get("/admin/users/recent", headers=auth_headers(admin))
    forbidden = client.get("/admin/users/recent", headers=auth_headers(interviewer))

    assert recent.status_code == 200
    assert len(recent.json()) == 3
    assert forbidden.status_code == 403


def test_get_user(client, interviewer, candidate, auth_headers):
    found = client.get(f"/admin/users/{candidate.id}", headers=auth_headers(interviewer))
    missing = client.get("/admin/users/999", headers=auth_headers(interviewer))

    assert found.status_code == 200
    assert found.json()["email"] == candidate.email
    assert missing.status_code == 404


def test_update_user_role_and_email(client, db_session, admin, candidate, interviewer, auth_headers):
    promoted = client.patch(
        f"/admin/users/{candidate.id}", json={"role": "INTERVIEWER"}, headers=auth_headers(admin)
    )
    taken = client.patch(
        f"/admin/users/{candidate.id}", json={"email": interviewer.email}, headers=auth_headers(admin)
    )
    by_self = client.patch(
        f"/admin/users/{interviewer.id}", json={"role": "ADMIN"}, headers=auth_headers(interviewer)
    )

    assert promoted.status_code == 200
    assert promoted.json()["role"] == "INTERVIEWER"
    assert taken.status_code == 409
    assert taken.json()["message"] == "Email already in use"
    assert by_self.status_code == 403
    db_session.expire_all()
    assert db_session.get(User, interviewer.id).role == Role.INTERVIEWER


def test_activity_counts(client, admin, candidate, interviewer, make_interview, make_assessment, auth_headers):
    make_interview(candidate, interviewer)
    make_interview(candidate, interviewer, status=InterviewStatus.COMPLETED)
    make_interview(candidate, interviewer, status=InterviewStatus.CANCELLED)
    make_assessment(candidate)
    make_assessment(candidate, status=AssessmentStatus.SUBMITTED, code_submission="x", ai_analysis=ANALYSIS)
    make_assessment(
        candidate, status=AssessmentStatus.REVIEWED, code_submission="x", ai_analysis=ANALYSIS,
        reviewer_id=interviewer.id, score=80, feedback="OK",
    )

    response = client.get("/admin/activity/count", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {
        "pending_interviews": 1,
        "completed_interviews": 1,
        "pending_assessments": 2,
        "completed_assessments": 1,
    }
    assert client.get("/admin/activity/count", headers=auth_headers(interviewer)).status_code == 403


def test_user_counts_by_role(client, admin, candidate, other_candidate, interviewer, auth_headers):
    response = client.get("/admin/users/count", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {"candidates": 2, "interviewers": 1, "admins": 1}
    assert client.get("/admin/users/count", headers=auth_headers(interviewer)).status_code == 403


def test_update_user_rejects_blank_name(client, db_session, admin, candidate, auth_headers):
    blank = client.patch(f"/admin/users/{candidate.id}", json={"name": "   "}, headers=auth_headers(admin))
    created = client.post(
        "/admin/users",
        json={"name": " ", "email": "blank@example.com", "password": "testpass123", "role": "CANDIDATE"},
        headers=auth_headers(admin),
    )

    assert blank.status_code == 400
    assert blank.json()["fields"] == ["name"]
    assert created.status_code == 400
    db_session.expire_all()
    assert db_session.get(User, candidate.id).name == "Carla"


def test_update_user_service_rejects_empty_values(db_session, admin, candidate):
    principal = Principal(id=admin.id, role=admin.role)

    with pytest.raises(ValidationError):
        user_service.update_user(db_session, principal, candidate.id, name="")
    with pytest.raises(ValidationError):
        user_service.update_user(db_session, principal, candidate.id, email="  ")

    db_session.expire_all()
    user = db_session.get(User, candidate.id)
    assert (user.name, user.email) == ("Carla", "carla@example.com")
