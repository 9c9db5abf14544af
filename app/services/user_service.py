"""
User service: registration, admin user management and cascading deletion.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.authorization import Principal, Action, authorize
from app.core.errors import DuplicateError, NotFoundError, ValidationError
from app.core.security import hash_password, verify_password
from app.db.models.user import User, Role
from app.db.models.interview import Interview, InterviewStatus
from app.db.models.coding_assessment import CodingAssessment, AssessmentStatus
from app.db.models.final_report import FinalReport
from app.schemas.admin import ActivityCounts, UserCounts

logger = logging.getLogger(__name__)

RECENT_USERS_LIMIT = 10


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _create_user(db: Session, name: str, email: str, password: str, role: Role) -> User:
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise DuplicateError("Email already registered")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against another registration for the same email
        db.rollback()
        raise DuplicateError("Email already registered")
    db.refresh(user)
    logger.info(f"User created: user_id={user.id}, role={role.value}")
    return user


def get_user_with_role(db: Session, user_id: int, role: Role, label: str) -> User:
    """Fetch a user that must exist and hold the given role."""
    user = db.query(User).filter(User.id == user_id, User.role == role).first()
    if not user:
        raise NotFoundError(f"{label} not found")
    return user


def register_user(db: Session, name: str, email: str, password: str, role: Role) -> User:
    """Self-registration. ADMIN accounts can only be created by an admin."""
    if role == Role.ADMIN:
        raise ValidationError("Invalid role", fields=["role"])
    return _create_user(db, name, email, password, role)


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def create_user(db: Session, principal: Principal, name: str, email: str, password: str, role: Role) -> User:
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    return _create_user(db, name, email, password, role)


def list_users(
    db: Session,
    principal: Principal,
    role: Optional[Role] = None,
    search: Optional[str] = None,
) -> List[User]:
    authorize(principal, None, Action.VIEW_DIRECTORY, "Access denied. Must be an admin or interviewer.")
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(term), User.email.ilike(term)))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def recent_users(db: Session, principal: Principal, limit: int = RECENT_USERS_LIMIT) -> List[User]:
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()


def get_user(db: Session, principal: Principal, user_id: int) -> User:
    authorize(principal, None, Action.VIEW_DIRECTORY)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(
    db: Session,
    principal: Principal,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[Role] = None,
) -> User:
    """Admin-only edit. This is the only path by which a user's role changes."""
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    if name is not None:
        if len(name.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters", fields=["name"])
        user.name = name.strip()
    if email is not None:
        email = _normalize_email(email)
        if not email:
            raise ValidationError("Email is required", fields=["email"])
        taken = db.query(User).filter(User.email == email, User.id != user_id).first()
        if taken:
            raise DuplicateError("Email already in use")
        user.email = email
    if role and role != user.role:
        logger.info(f"Role changed: user_id={user.id}, {user.role.value} -> {role.value}, by admin_id={principal.id}")
        user.role = role

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateError("Email already in use")
    db.refresh(user)
    return user


def delete_user(db: Session, principal: Principal, user_id: int) -> None:
    """
    Delete a user and everything that hangs off them, in one transaction.

    - their FinalReport and CodingAssessments (as candidate) are deleted
    - assessments they reviewed keep their row with reviewer_id set to NULL
    - interviews where they are candidate or interviewer are deleted
    """
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    if user_id == principal.id:
        raise ValidationError("Cannot delete your own account", fields=["id"])

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    try:
        reports = db.query(FinalReport).filter(FinalReport.candidate_id == user_id).delete(synchronize_session=False)
        own_assessments = db.query(CodingAssessment).filter(
            CodingAssessment.candidate_id == user_id
        ).delete(synchronize_session=False)
        unclaimed = db.query(CodingAssessment).filter(
            CodingAssessment.reviewer_id == user_id
        ).update({"reviewer_id": None}, synchronize_session=False)
        interviews = db.query(Interview).filter(
            or_(Interview.candidate_id == user_id, Interview.interviewer_id == user_id)
        ).delete(synchronize_session=False)
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to delete user_id={user_id}", exc_info=True)
        raise

    db.expire_all()
    logger.info(
        f"User deleted: user_id={user_id}, reports={reports}, assessments={own_assessments}, "
        f"reviews_unassigned={unclaimed}, interviews={interviews}, by admin_id={principal.id}"
    )


def activity_counts(db: Session, principal: Principal) -> ActivityCounts:
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    return ActivityCounts(
        pending_interviews=db.query(Interview).filter(Interview.status == InterviewStatus.SCHEDULED).count(),
        completed_interviews=db.query(Interview).filter(Interview.status == InterviewStatus.COMPLETED).count(),
        pending_assessments=db.query(CodingAssessment).filter(
            CodingAssessment.status.in_([AssessmentStatus.PENDING, AssessmentStatus.SUBMITTED])
        ).count(),
        completed_assessments=db.query(CodingAssessment).filter(
            CodingAssessment.status == AssessmentStatus.REVIEWED
        ).count(),
    )


def user_counts(db: Session, principal: Principal) -> UserCounts:
    authorize(principal, None, Action.MANAGE_USERS, "Access denied. Must be an admin.")
    return UserCounts(
        candidates=db.query(User).filter(User.role == Role.CANDIDATE).count(),
        interviewers=db.query(User).filter(User.role == Role.INTERVIEWER).count(),
        admins=db.query(User).filter(User.role == Role.ADMIN).count(),
    )
