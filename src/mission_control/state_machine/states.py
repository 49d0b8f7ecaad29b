"""Task status vocabulary and per-state properties."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    INBOX = "INBOX"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    BLOCKED = "BLOCKED"
    FAILED = "FAILED"
    DONE = "DONE"
    CANCELED = "CANCELED"


class TransitionActor(str, Enum):
    """Who is asking for a status change."""

    AGENT = "agent"
    HUMAN = "human"
    SYSTEM = "system"


@dataclass(slots=True, frozen=True)
class StateDefinition:
    """Static properties of one status."""

    status: TaskStatus
    description: str
    terminal: bool
    required_artifacts: tuple[str, ...] = ()


STATE_DEFINITIONS: dict[TaskStatus, StateDefinition] = {
    TaskStatus.INBOX: StateDefinition(
        status=TaskStatus.INBOX,
        description="New task, not assigned",
        terminal=False,
    ),
    TaskStatus.ASSIGNED: StateDefinition(
        status=TaskStatus.ASSIGNED,
        description="Assigned to agent(s), not started",
        terminal=False,
    ),
    TaskStatus.IN_PROGRESS: StateDefinition(
        status=TaskStatus.IN_PROGRESS,
        description="Agent actively working",
        terminal=False,
        required_artifacts=("workPlan", "assigneeIds"),
    ),
    TaskStatus.REVIEW: StateDefinition(
        status=TaskStatus.REVIEW,
        description="Agent submitted for review",
        terminal=False,
        required_artifacts=("deliverable", "selfReview"),
    ),
    TaskStatus.NEEDS_APPROVAL: StateDefinition(
        status=TaskStatus.NEEDS_APPROVAL,
        description="Waiting for human approval",
        terminal=False,
    ),
    TaskStatus.BLOCKED: StateDefinition(
        status=TaskStatus.BLOCKED,
        description="Cannot proceed (budget, loop or failure)",
        terminal=False,
    ),
    TaskStatus.FAILED: StateDefinition(
        status=TaskStatus.FAILED,
        description="Unrecoverable failure",
        terminal=True,
    ),
    TaskStatus.DONE: StateDefinition(
        status=TaskStatus.DONE,
        description="Completed and approved",
        terminal=True,
        required_artifacts=("deliverable", "approvalRecord"),
    ),
    TaskStatus.CANCELED: StateDefinition(
        status=TaskStatus.CANCELED,
        description="Abandoned",
        terminal=True,
    ),
}

TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset(
    status for status, definition in STATE_DEFINITIONS.items() if definition.terminal
)


def is_terminal_status(status: TaskStatus | str) -> bool:
    """Return True for DONE, CANCELED and FAILED."""

    return STATE_DEFINITIONS[TaskStatus(status)].terminal


def get_required_artifacts(status: TaskStatus | str) -> tuple[str, ...]:
    """Artifacts a task is expected to carry while in ``status``."""

    return STATE_DEFINITIONS[TaskStatus(status)].required_artifacts


def parse_status(value: str) -> TaskStatus:
    """Parse a status name case-insensitively."""

    normalized = value.strip().upper()
    try:
        return TaskStatus(normalized)
    except ValueError as error:
        allowed = ", ".join(status.value for status in TaskStatus)
        raise ValueError(f"Unknown task status: {value!r}. Use one of {allowed}.") from error


def parse_actor(value: str) -> TransitionActor:
    """Parse a transition actor case-insensitively."""

    normalized = value.strip().lower()
    try:
        return TransitionActor(normalized)
    except ValueError as error:
        allowed = ", ".join(actor.value for actor in TransitionActor)
        raise ValueError(f"Unknown transition actor: {value!r}. Use one of {allowed}.") from error
