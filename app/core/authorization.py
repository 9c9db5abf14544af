"""
Centralized authorization guard.

Every route and service asks one question: may this principal perform this
action on a resource owned by these users? The answer comes from a single
policy table instead of per-endpoint role checks.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.errors import AuthenticationError, AuthorizationError
from app.db.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated actor making a request."""
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Action(str, enum.Enum):
    """Actions the guard knows how to decide."""
    # Resource-bound
    VIEW = "view"
    UPDATE = "update"
    CANCEL = "cancel"
    COMPLETE = "complete"
    ATTACH_TRANSCRIPT = "attach_transcript"
    PROVIDE_FEEDBACK = "provide_feedback"
    JOIN = "join"
    SUBMIT = "submit"
    REVIEW = "review"
    VIEW_REPORT = "view_report"
    # Role-bound
    CREATE = "create"
    VIEW_DIRECTORY = "view_directory"
    GENERATE_REPORT = "generate_report"
    MANAGE_USERS = "manage_users"


@dataclass(frozen=True)
class ResourceOwners:
    """The users a resource is bound to, as persisted right now."""
    candidate_id: Optional[int] = None
    interviewer_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    # Submitted for review and not yet claimed by any reviewer
    claimable: bool = False


class Relation(str, enum.Enum):
    CANDIDATE = "candidate"
    INTERVIEWER = "interviewer"
    REVIEWER = "reviewer"
    CLAIMANT = "claimant"
    ANY_INTERVIEWER = "any_interviewer"


# Relations that grant a non-admin principal each action.
ACTION_POLICY = {
    Action.VIEW: frozenset({Relation.CANDIDATE, Relation.INTERVIEWER, Relation.REVIEWER, Relation.CLAIMANT}),
    Action.UPDATE: frozenset({Relation.INTERVIEWER}),
    Action.CANCEL: frozenset({Relation.CANDIDATE, Relation.INTERVIEWER}),
    Action.COMPLETE: frozenset({Relation.INTERVIEWER}),
    Action.ATTACH_TRANSCRIPT: frozenset({Relation.INTERVIEWER}),
    Action.PROVIDE_FEEDBACK: frozenset({Relation.INTERVIEWER}),
    Action.JOIN: frozenset({Relation.CANDIDATE, Relation.INTERVIEWER}),
    Action.SUBMIT: frozenset({Relation.CANDIDATE}),
    # Reviewer conflicts are a lifecycle concern, not an access one
    Action.REVIEW: frozenset({Relation.ANY_INTERVIEWER}),
    Action.VIEW_REPORT: frozenset({Relation.CANDIDATE}),
    Action.CREATE: frozenset({Relation.ANY_INTERVIEWER}),
    Action.VIEW_DIRECTORY: frozenset({Relation.ANY_INTERVIEWER}),
    Action.GENERATE_REPORT: frozenset(),
    Action.MANAGE_USERS: frozenset(),
}

# Only the named candidate may hand in their own work.
ADMIN_EXCLUDED_ACTIONS = frozenset({Action.SUBMIT})


def _holds(relation: Relation, principal: Principal, owners: ResourceOwners) -> bool:
    if relation == Relation.CANDIDATE:
        return principal.role == Role.CANDIDATE and owners.candidate_id == principal.id
    if relation == Relation.INTERVIEWER:
        return principal.role == Role.INTERVIEWER and owners.interviewer_id == principal.id
    if relation == Relation.REVIEWER:
        return principal.role == Role.INTERVIEWER and owners.reviewer_id == principal.id
    if relation == Relation.CLAIMANT:
        return principal.role == Role.INTERVIEWER and owners.claimable
    if relation == Relation.ANY_INTERVIEWER:
        return principal.role == Role.INTERVIEWER
    return False


def can_access(principal: Optional[Principal], owners: Optional[ResourceOwners], action: Action) -> bool:
    """Pure allow/deny decision for (principal, resource owners, action)."""
    if principal is None:
        return False
    if principal.is_admin:
        return action not in ADMIN_EXCLUDED_ACTIONS
    owners = owners or ResourceOwners()
    return any(_holds(relation, principal, owners) for relation in ACTION_POLICY[action])


def authorize(
    principal: Optional[Principal],
    owners: Optional[ResourceOwners],
    action: Action,
    message: str = "Access denied",
) -> Principal:
    """
    Enforce can_access.

    Raises:
        AuthenticationError: No principal
        AuthorizationError: Principal is not allowed to perform the action
    """
    if principal is None:
        raise AuthenticationError()
    if not can_access(principal, owners, action):
        logger.warning(f"Access denied: user_id={principal.id}, role={principal.role.value}, action={action.value}")
        raise AuthorizationError(message)
    return principal
