"""
Shared fixtures: in-memory database, API client and fake external services.
"""
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.models.user import User, Role
from app.db.models.interview import Interview, InterviewType, InterviewStatus
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.final_report import Recommendation
from app.core.auth_dependency import get_db
from app.core.errors import UpstreamError
from app.core.security import hash_password, create_access_token
from app.services.analysis_oracle import (
    AnalysisOracle,
    TranscriptAnalysis,
    CodeAnalysis,
    FinalReportAnalysis,
    get_analysis_oracle,
)
from app.services.room_provisioner import (
    RoomProvisioner,
    RoomFallbackPolicy,
    get_room_provisioner,
    get_room_fallback_policy,
)


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_PASSWORD = "testpass123"
# One hash for every fixture user; bcrypt is slow on purpose
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeOracle(AnalysisOracle):
    """Deterministic oracle. With fail=True every call raises UpstreamError."""

    def __init__(self, fail: bool = False, suggested_hike: float = 12.5):
        self.fail = fail
        self.suggested_hike = suggested_hike
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.fail:
            raise UpstreamError("Analysis service is unavailable. Please try again.")

    def analyze_transcript(self, transcript, interview_type):
        self._record("analyze_transcript", transcript, interview_type)
        return TranscriptAnalysis(
            overall_score=78,
            strengths=["Clear communication"],
            weaknesses=["Limited system design depth"],
            summary=f"{interview_type.value} interview went well.",
            recommendation=Recommendation.HIRE,
        )

    def analyze_code(self, code, requirements):
        self._record("analyze_code", code, requirements)
        return CodeAnalysis(
            overall_score=82,
            code_quality=8,
            functionality=9,
            strengths=["Correct output"],
            weaknesses=["No tests"],
            summary="Solid solution.",
            recommendation="PASS",
        )

    def compose_final_report(self, technical, coding, managerial):
        self._record("compose_final_report", technical, coding, managerial)
        return FinalReportAnalysis(
            overall_rating=80,
            technical_score=technical.get("overall_score", 0),
            coding_score=coding.get("overall_score", 0),
            managerial_score=managerial.get("overall_score", 0),
            strengths=["Clear communication", "Correct output"],
            weaknesses=["No tests"],
            summary="Recommended.",
            recommendation=Recommendation.HIRE,
            suggested_hike=self.suggested_hike,
        )


class FakeProvisioner(RoomProvisioner):
    """Hands out room-1, room-2, ... With fail=True every call raises UpstreamError."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.created = 0
        self._ids = itertools.count(1)

    def create_room(self, interview_id):
        if self.fail:
            raise UpstreamError("Video service timed out")
        self.created += 1
        return f"room-{next(self._ids)}"

    def issue_token(self):
        if self.fail:
            raise UpstreamError("Video service timed out")
        return "join-token"


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def oracle():
    fake = FakeOracle()
    app.dependency_overrides[get_analysis_oracle] = lambda: fake
    return fake


@pytest.fixture
def provisioner():
    fake = FakeProvisioner()
    app.dependency_overrides[get_room_provisioner] = lambda: fake
    app.dependency_overrides[get_room_fallback_policy] = lambda: RoomFallbackPolicy.DEGRADE
    return fake


@pytest.fixture
def make_user(db_session):
    """Factory: make_user(Role.CANDIDATE, "alice") -> persisted User."""
    def _make(role: Role, name: str) -> User:
        user = User(
            name=name.title(),
            email=f"{name}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, "admin")


@pytest.fixture
def interviewer(make_user):
    return make_user(Role.INTERVIEWER, "ivan")


@pytest.fixture
def other_interviewer(make_user):
    return make_user(Role.INTERVIEWER, "olga")


@pytest.fixture
def candidate(make_user):
    return make_user(Role.CANDIDATE, "carla")


@pytest.fixture
def other_candidate(make_user):
    return make_user(Role.CANDIDATE, "dave")


@pytest.fixture
def auth_headers():
    """auth_headers(user) -> bearer headers for that user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
    return _headers


@pytest.fixture
def future_iso():
    def _future(days: int = 1) -> str:
        return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()
    return _future


@pytest.fixture
def make_interview(db_session):
    """Factory for interviews inserted directly, bypassing the API."""
    def _make(candidate, interviewer, status=InterviewStatus.SCHEDULED,
              interview_type=InterviewType.TECHNICAL, **fields) -> Interview:
        interview = Interview(
            title=fields.pop("title", "Backend round"),
            type=interview_type,
            status=status,
            scheduled_at=datetime.now(timezone.utc) + timedelta(days=1),
            duration=60,
            candidate_id=candidate.id,
            interviewer_id=interviewer.id,
            **fields,
        )
        db_session.add(interview)
        db_session.commit()
        db_session.refresh(interview)
        return interview
    return _make


@pytest.fixture
def make_assessment(db_session):
    """Factory for coding assessments inserted directly, bypassing the API."""
    def _make(candidate, status=AssessmentStatus.PENDING, **fields) -> CodingAssessment:
        assessment = CodingAssessment(
            title=fields.pop("title", "Two Sum"),
            description="Find two numbers that add up to a target.",
            requirements="Return the indices. O(n) time.",
            status=status,
            candidate_id=candidate.id,
            **fields,
        )
        db_session.add(assessment)
        db_session.commit()
        db_session.refresh(assessment)
        return assessment
    return _make
