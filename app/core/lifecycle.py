"""
Lifecycle state machines for interviews and coding assessments.

Each machine is an explicit transition table checked once per mutating
operation. Anything not in the table is a StateConflictError.
"""
import enum
from typing import Dict, FrozenSet, Optional

from app.core.errors import StateConflictError
from app.db.models.interview import InterviewStatus
from app.db.models.coding_assessment import AssessmentStatus


class StateMachine:
    def __init__(self, name: str, initial: enum.Enum, transitions: Dict[enum.Enum, FrozenSet[enum.Enum]]):
        self.name = name
        self.initial = initial
        self.transitions = transitions

    def allowed_targets(self, current: enum.Enum) -> FrozenSet[enum.Enum]:
        return self.transitions.get(current, frozenset())

    def can_transition(self, current: enum.Enum, target: enum.Enum) -> bool:
        return target in self.allowed_targets(current)

    def is_terminal(self, state: enum.Enum) -> bool:
        return not (self.allowed_targets(state) - {state})

    def ensure(self, current: enum.Enum, target: enum.Enum, message: Optional[str] = None) -> None:
        """Raise StateConflictError unless current -> target is in the table."""
        if not self.can_transition(current, target):
            raise StateConflictError(
                message or f"Cannot move {self.name} from {current.value} to {target.value}"
            )


INTERVIEW_LIFECYCLE = StateMachine(
    "interview",
    InterviewStatus.SCHEDULED,
    {
        InterviewStatus.SCHEDULED: frozenset({InterviewStatus.COMPLETED, InterviewStatus.CANCELLED}),
        InterviewStatus.COMPLETED: frozenset(),
        InterviewStatus.CANCELLED: frozenset(),
    },
)

# REVIEWED -> REVIEWED is a re-review by the same reviewer or an admin
ASSESSMENT_LIFECYCLE = StateMachine(
    "assessment",
    AssessmentStatus.PENDING,
    {
        AssessmentStatus.PENDING: frozenset({AssessmentStatus.SUBMITTED}),
        AssessmentStatus.SUBMITTED: frozenset({AssessmentStatus.REVIEWED}),
        AssessmentStatus.REVIEWED: frozenset({AssessmentStatus.REVIEWED}),
    },
)
