"""Task state machine: status vocabulary, transition table and validation."""

from mission_control.state_machine.audit import (
    TransitionOutcome,
    TransitionRecord,
    record_transition,
)
from mission_control.state_machine.states import (
    STATE_DEFINITIONS,
    TERMINAL_STATUSES,
    StateDefinition,
    TaskStatus,
    TransitionActor,
    get_required_artifacts,
    is_terminal_status,
)
from mission_control.state_machine.transitions import (
    TRANSITION_RULES,
    TransitionRule,
    find_transition_rule,
    get_valid_transitions,
    is_valid_transition,
)
from mission_control.state_machine.validator import (
    TransitionContext,
    ValidationResult,
    can_actor_transition,
    explain_transition,
    get_valid_next_statuses,
    validate_transition,
    validate_transitions,
)

__all__ = [
    "STATE_DEFINITIONS",
    "TERMINAL_STATUSES",
    "TRANSITION_RULES",
    "StateDefinition",
    "TaskStatus",
    "TransitionActor",
    "TransitionContext",
    "TransitionOutcome",
    "TransitionRecord",
    "TransitionRule",
    "ValidationResult",
    "can_actor_transition",
    "explain_transition",
    "find_transition_rule",
    "get_required_artifacts",
    "get_valid_next_statuses",
    "get_valid_transitions",
    "is_terminal_status",
    "is_valid_transition",
    "record_transition",
    "validate_transition",
    "validate_transitions",
]
