"""
Unit tests for the centralized authorization guard.
"""
import pytest

from app.core.authorization import Principal, Action, ResourceOwners, can_access, authorize
from app.core.errors import AuthenticationError, AuthorizationError
from app.db.models.user import Role

ADMIN = Principal(id=1, role=Role.ADMIN)
INTERVIEWER = Principal(id=2, role=Role.INTERVIEWER)
OTHER_INTERVIEWER = Principal(id=3, role=Role.INTERVIEWER)
CANDIDATE = Principal(id=4, role=Role.CANDIDATE)
OTHER_CANDIDATE = Principal(id=5, role=Role.CANDIDATE)

INTERVIEW = ResourceOwners(candidate_id=CANDIDATE.id, interviewer_id=INTERVIEWER.id)


def test_unauthenticated_is_always_denied():
    for action in Action:
        assert can_access(None, INTERVIEW, action) is False


def test_admin_is_allowed_everything_but_submitting():
    for action in Action:
        assert can_access(ADMIN, ResourceOwners(), action) is (action != Action.SUBMIT)


@pytest.mark.parametrize("action", [Action.VIEW, Action.CANCEL, Action.JOIN])
def test_candidate_acts_on_own_interview(action):
    assert can_access(CANDIDATE, INTERVIEW, action)
    assert not can_access(OTHER_CANDIDATE, INTERVIEW, action)


@pytest.mark.parametrize("action", [Action.COMPLETE, Action.ATTACH_TRANSCRIPT, Action.PROVIDE_FEEDBACK, Action.UPDATE])
def test_only_assigned_interviewer_runs_the_interview(action):
    assert can_access(INTERVIEWER, INTERVIEW, action)
    assert not can_access(OTHER_INTERVIEWER, INTERVIEW, action)
    assert not can_access(CANDIDATE, INTERVIEW, action)


def test_roles_do_not_leak_through_matching_ids():
    # An interviewer whose id happens to equal the candidate_id is still not the candidate
    owners = ResourceOwners(candidate_id=INTERVIEWER.id)
    assert not can_access(INTERVIEWER, owners, Action.SUBMIT)
    assert not can_access(INTERVIEWER, owners, Action.VIEW_REPORT)


def test_unclaimed_submission_is_visible_to_any_interviewer():
    unclaimed = ResourceOwners(candidate_id=CANDIDATE.id, claimable=True)
    claimed = ResourceOwners(candidate_id=CANDIDATE.id, reviewer_id=INTERVIEWER.id)

    assert can_access(OTHER_INTERVIEWER, unclaimed, Action.VIEW)
    assert can_access(INTERVIEWER, claimed, Action.VIEW)
    assert not can_access(OTHER_INTERVIEWER, claimed, Action.VIEW)


def test_role_bound_actions():
    assert can_access(INTERVIEWER, None, Action.CREATE)
    assert can_access(INTERVIEWER, None, Action.REVIEW)
    assert can_access(INTERVIEWER, None, Action.VIEW_DIRECTORY)
    assert not can_access(CANDIDATE, None, Action.CREATE)
    assert not can_access(INTERVIEWER, None, Action.GENERATE_REPORT)
    assert not can_access(INTERVIEWER, None, Action.MANAGE_USERS)


def test_authorize_raises_distinct_errors():
    with pytest.raises(AuthenticationError):
        authorize(None, INTERVIEW, Action.VIEW)
    with pytest.raises(AuthorizationError) as exc:
        authorize(OTHER_CANDIDATE, INTERVIEW, Action.VIEW, "Access denied. Not your interview.")
    assert exc.value.message == "Access denied. Not your interview."
    assert authorize(CANDIDATE, INTERVIEW, Action.VIEW) is CANDIDATE
