"""Fleet-wide assignment: workload counting, recommendations and auto-assign."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from mission_control.common import utc_now
from mission_control.coordinator.delegator import (
    build_reasoning,
    is_eligible,
    score_candidate,
    select_best,
)
from mission_control.coordinator.models import (
    ActivityEvent,
    AgentCandidate,
    ScoreBreakdown,
    TaskSnapshot,
)
from mission_control.state_machine import TaskStatus, TransitionActor

logger = logging.getLogger(__name__)

AUTO_ASSIGNED_ACTION = "AUTO_ASSIGNED"
NO_AGENT_ERROR = "No suitable agent found"
_BUSY_STATUSES = frozenset({TaskStatus.ASSIGNED.value, TaskStatus.IN_PROGRESS.value})


@dataclass(slots=True, frozen=True)
class AgentRecommendation:
    """One ranked entry of :func:`recommend_agents`."""

    agent_id: str
    agent_name: str
    score: float
    workload: int
    breakdown: ScoreBreakdown
    reasoning: str


@dataclass(slots=True, frozen=True)
class AssignmentOutcome:
    """Result of :func:`auto_assign`; ``event`` is set only on success."""

    success: bool
    task_id: str
    agent_id: str | None = None
    agent_name: str | None = None
    score: float = 0.0
    assignee_ids: tuple[str, ...] = ()
    status: TaskStatus | None = None
    event: ActivityEvent | None = None
    error: str | None = None


def _status_value(status: TaskStatus | str) -> str:
    return status.value if isinstance(status, TaskStatus) else str(status).upper()


def compute_workloads(tasks: Iterable[TaskSnapshot]) -> dict[str, int]:
    """Count ASSIGNED and IN_PROGRESS tasks per assignee."""

    workloads: dict[str, int] = {}
    for task in tasks:
        if _status_value(task.status) not in _BUSY_STATUSES:
            continue
        for agent_id in task.assignee_ids:
            workloads[agent_id] = workloads.get(agent_id, 0) + 1
    return workloads


def _with_workloads(
    roster: Sequence[AgentCandidate],
    workloads: Mapping[str, int],
) -> list[AgentCandidate]:
    return [
        replace(candidate, active_task_count=workloads.get(candidate.id, 0)) for candidate in roster
    ]


def recommend_agents(
    task_type: str,
    roster: Sequence[AgentCandidate],
    tasks: Iterable[TaskSnapshot],
    *,
    limit: int = 5,
) -> list[AgentRecommendation]:
    """Rank eligible agents for ``task_type`` by score, best first."""

    adjusted = _with_workloads(roster, compute_workloads(tasks))
    max_active = max((candidate.active_task_count for candidate in adjusted), default=0)
    ranked: list[AgentRecommendation] = []
    for candidate in adjusted:
        if not is_eligible(candidate, task_type):
            continue
        breakdown = score_candidate(candidate, task_type, max_active_task_count=max_active)
        ranked.append(
            AgentRecommendation(
                agent_id=candidate.id,
                agent_name=candidate.name,
                score=breakdown.total,
                workload=candidate.active_task_count,
                breakdown=breakdown,
                reasoning=build_reasoning(candidate, breakdown),
            ),
        )
    # sorted() is stable, so equal scores keep roster order
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked[: max(0, limit)]


def auto_assign(  # noqa: PLR0913
    task: TaskSnapshot,
    roster: Sequence[AgentCandidate],
    tasks: Iterable[TaskSnapshot],
    *,
    actor: TransitionActor | str = TransitionActor.SYSTEM,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> AssignmentOutcome:
    """Choose an additional assignee for ``task`` and describe the change as an event.

    Agents already assigned to the task are not considered. Nothing is written;
    the caller applies ``assignee_ids`` and stores ``event``. ``status`` is set
    only when an INBOX task should move to ASSIGNED.
    """

    excluded = set(task.assignee_ids)
    workloads = compute_workloads(tasks)
    available = [
        candidate
        for candidate in _with_workloads(roster, workloads)
        if candidate.id not in excluded
    ]
    picked = select_best(available, task.type)
    if picked is None:
        logger.info("Auto-assign found no agent for task %s", task.id)
        return AssignmentOutcome(success=False, task_id=task.id, error=NO_AGENT_ERROR)

    candidate, breakdown = picked
    actor_value = actor.value if isinstance(actor, TransitionActor) else str(actor)
    event = ActivityEvent(
        action=AUTO_ASSIGNED_ACTION,
        description=f"Auto-assigned task to {candidate.name} (score: {breakdown.total:.2f})",
        actor_type=actor_value.upper(),
        actor_id=actor_id,
        created_at=now or utc_now(),
        task_id=task.id,
        agent_id=candidate.id,
        details={
            "score": breakdown.total,
            "workload": candidate.active_task_count,
            "role": str(getattr(candidate.role, "value", candidate.role)),
            "breakdown": breakdown.to_details(),
        },
    )
    return AssignmentOutcome(
        success=True,
        task_id=task.id,
        agent_id=candidate.id,
        agent_name=candidate.name,
        score=breakdown.total,
        assignee_ids=(*task.assignee_ids, candidate.id),
        status=(
            TaskStatus.ASSIGNED
            if _status_value(task.status) == TaskStatus.INBOX.value
            else None
        ),
        event=event,
    )
