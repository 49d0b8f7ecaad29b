"""Canonical transition table.

This table is the sole authority on which status changes are legal. Adding a
state or a path is a data change here; nothing else branches on statuses.
"""

from __future__ import annotations

from dataclasses import dataclass

from mission_control.state_machine.states import TaskStatus, TransitionActor

AGENT = TransitionActor.AGENT
HUMAN = TransitionActor.HUMAN
SYSTEM = TransitionActor.SYSTEM


@dataclass(slots=True, frozen=True)
class TransitionRule:
    """One legal ``from -> to`` path with its actor and evidence requirements."""

    from_status: TaskStatus
    to_status: TaskStatus
    allowed_actors: frozenset[TransitionActor]
    description: str
    required_artifacts: tuple[str, ...] = ()


def _rule(
    from_status: TaskStatus,
    to_status: TaskStatus,
    actors: tuple[TransitionActor, ...],
    description: str,
    artifacts: tuple[str, ...] = (),
) -> TransitionRule:
    return TransitionRule(
        from_status=from_status,
        to_status=to_status,
        allowed_actors=frozenset(actors),
        description=description,
        required_artifacts=artifacts,
    )


S = TaskStatus

TRANSITION_RULES: tuple[TransitionRule, ...] = (
    # INBOX
    _rule(S.INBOX, S.ASSIGNED, (AGENT, HUMAN, SYSTEM), "Assign task to agent(s)", ("assigneeIds",)),
    _rule(S.INBOX, S.NEEDS_APPROVAL, (SYSTEM,), "System requires approval before starting"),
    _rule(S.INBOX, S.BLOCKED, (SYSTEM, HUMAN), "Block task before assignment"),
    _rule(S.INBOX, S.CANCELED, (HUMAN,), "Cancel task before assignment"),
    # ASSIGNED
    _rule(S.ASSIGNED, S.IN_PROGRESS, (AGENT, HUMAN), "Agent starts working on task", ("workPlan",)),
    _rule(S.ASSIGNED, S.NEEDS_APPROVAL, (SYSTEM,), "System requires approval before starting"),
    _rule(S.ASSIGNED, S.BLOCKED, (SYSTEM, HUMAN), "Block assigned task"),
    _rule(S.ASSIGNED, S.CANCELED, (HUMAN,), "Cancel assigned task"),
    _rule(S.ASSIGNED, S.INBOX, (HUMAN,), "Unassign task (human only)"),
    # IN_PROGRESS
    _rule(
        S.IN_PROGRESS,
        S.REVIEW,
        (AGENT, HUMAN),
        "Agent submits work for review",
        ("deliverable", "selfReview"),
    ),
    _rule(S.IN_PROGRESS, S.NEEDS_APPROVAL, (SYSTEM,), "System requires approval during execution"),
    _rule(S.IN_PROGRESS, S.BLOCKED, (SYSTEM, HUMAN), "Block task during execution"),
    _rule(S.IN_PROGRESS, S.FAILED, (SYSTEM, AGENT), "Task failed unrecoverably during execution"),
    _rule(S.IN_PROGRESS, S.CANCELED, (HUMAN,), "Cancel task during execution"),
    _rule(S.IN_PROGRESS, S.ASSIGNED, (HUMAN,), "Revert to assigned (human only)"),
    # REVIEW
    _rule(S.REVIEW, S.IN_PROGRESS, (AGENT, HUMAN), "Request revisions"),
    _rule(
        S.REVIEW,
        S.DONE,
        (HUMAN,),
        "Approve and complete task (human only)",
        ("approvalRecord",),
    ),
    _rule(S.REVIEW, S.NEEDS_APPROVAL, (SYSTEM, HUMAN), "Require additional approval"),
    _rule(S.REVIEW, S.BLOCKED, (SYSTEM, HUMAN), "Block task during review"),
    _rule(S.REVIEW, S.FAILED, (SYSTEM,), "Task failed during review"),
    _rule(S.REVIEW, S.CANCELED, (HUMAN,), "Cancel task during review"),
    _rule(S.REVIEW, S.ASSIGNED, (HUMAN,), "Reassign task (human only)"),
    # NEEDS_APPROVAL
    _rule(S.NEEDS_APPROVAL, S.BLOCKED, (SYSTEM, HUMAN), "Block while awaiting approval"),
    _rule(S.NEEDS_APPROVAL, S.ASSIGNED, (HUMAN,), "Approve and assign (human only)"),
    _rule(S.NEEDS_APPROVAL, S.IN_PROGRESS, (HUMAN,), "Approve and continue (human only)"),
    _rule(S.NEEDS_APPROVAL, S.REVIEW, (HUMAN,), "Approve and move to review (human only)"),
    _rule(
        S.NEEDS_APPROVAL,
        S.DONE,
        (HUMAN,),
        "Approve and complete (human only)",
        ("approvalRecord",),
    ),
    _rule(S.NEEDS_APPROVAL, S.FAILED, (SYSTEM, HUMAN), "Denied approval leads to failure"),
    _rule(S.NEEDS_APPROVAL, S.CANCELED, (HUMAN,), "Deny approval and cancel"),
    # BLOCKED
    _rule(S.BLOCKED, S.ASSIGNED, (HUMAN,), "Unblock and assign (human only)"),
    _rule(S.BLOCKED, S.IN_PROGRESS, (HUMAN,), "Unblock and continue (human only)"),
    _rule(S.BLOCKED, S.NEEDS_APPROVAL, (HUMAN, SYSTEM), "Require approval to unblock"),
    _rule(S.BLOCKED, S.FAILED, (HUMAN, SYSTEM), "Blocked task determined unrecoverable"),
    _rule(S.BLOCKED, S.CANCELED, (HUMAN,), "Cancel blocked task"),
    # FAILED: terminal, reopenable by a human
    _rule(S.FAILED, S.INBOX, (HUMAN,), "Reopen failed task for retry (human only)"),
    _rule(S.FAILED, S.CANCELED, (HUMAN,), "Cancel a failed task"),
    # DONE: terminal, reopenable by a human
    _rule(S.DONE, S.REVIEW, (HUMAN,), "Reopen for review (human only)"),
    _rule(S.DONE, S.CANCELED, (HUMAN,), "Mark as canceled (incorrect close)"),
    # CANCELED has no outbound rules.
)

_RULES_BY_PATH: dict[tuple[TaskStatus, TaskStatus], TransitionRule] = {
    (rule.from_status, rule.to_status): rule for rule in TRANSITION_RULES
}


def get_valid_transitions(from_status: TaskStatus | str) -> list[TransitionRule]:
    """All rules leaving ``from_status``, in table order."""

    origin = TaskStatus(from_status)
    return [rule for rule in TRANSITION_RULES if rule.from_status == origin]


def find_transition_rule(
    from_status: TaskStatus | str,
    to_status: TaskStatus | str,
) -> TransitionRule | None:
    """Return the rule for ``from -> to`` or None when the path does not exist."""

    return _RULES_BY_PATH.get((TaskStatus(from_status), TaskStatus(to_status)))


def is_valid_transition(from_status: TaskStatus | str, to_status: TaskStatus | str) -> bool:
    """Check path existence only, ignoring actor and artifacts."""

    return find_transition_rule(from_status, to_status) is not None
