"""Pick the best eligible agent for a subtask with the weighted scoring formula."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from mission_control.coordinator.models import (
    AgentCandidate,
    AgentRole,
    AgentStatus,
    DelegationResult,
    PerformanceHistory,
    ScoreBreakdown,
    Subtask,
    TaskInputError,
)

logger = logging.getLogger(__name__)

ROLE_WEIGHTS: dict[str, float] = {
    AgentRole.LEAD.value: 1.0,
    AgentRole.SPECIALIST.value: 0.8,
    AgentRole.REVIEWER.value: 0.6,
    AgentRole.CHALLENGER.value: 0.6,
    AgentRole.INTERN.value: 0.4,
}
DEFAULT_ROLE_WEIGHT = 0.5
DEFAULT_PERFORMANCE = 0.5


def _value(raw: object) -> str:
    return raw.value if isinstance(raw, AgentRole | AgentStatus) else str(raw)


def is_eligible(candidate: AgentCandidate, task_type: str) -> bool:
    """Hard constraints: ACTIVE, budget left, and task type allowed when a list is declared."""

    if _value(candidate.status) != AgentStatus.ACTIVE.value:
        return False
    if candidate.budget_remaining <= 0:
        return False
    if candidate.allowed_task_types and task_type not in candidate.allowed_task_types:
        return False
    return True


def performance_factor(
    history: PerformanceHistory | None,
    performance_score: float | None = None,
) -> float:
    """Performance contribution in 0..1; no history at all means 0.5."""

    if history is not None and history.total_tasks > 0:
        refute_component = max(0.0, 1.0 - history.refute_count * 0.1)
        return history.success_rate * 0.7 + refute_component * 0.3
    if performance_score is not None:
        return max(0.0, min(1.0, performance_score))
    return DEFAULT_PERFORMANCE


def role_weight(role: AgentRole | str) -> float:
    return ROLE_WEIGHTS.get(_value(role).upper(), DEFAULT_ROLE_WEIGHT)


def score_candidate(
    candidate: AgentCandidate,
    task_type: str,
    *,
    max_active_task_count: int,
) -> ScoreBreakdown:
    """Score one candidate against a task type relative to the roster's busiest agent."""

    skill_match = 1.0 if task_type in candidate.allowed_task_types else 0.0
    availability = 1.0 if _value(candidate.status) == AgentStatus.ACTIVE.value else 0.0
    workload = 1.0 - candidate.active_task_count / max(1, max_active_task_count)
    return ScoreBreakdown(
        skill_match=skill_match,
        availability=availability,
        workload=max(0.0, workload),
        performance=performance_factor(candidate.performance, candidate.performance_score),
        role=role_weight(candidate.role),
    )


def build_reasoning(candidate: AgentCandidate, breakdown: ScoreBreakdown) -> str:
    parts = [
        f"Skill match: {'yes' if breakdown.skill_match else 'no'}",
        f"Role: {_value(candidate.role)} ({breakdown.role:.1f})",
        f"Performance: {breakdown.performance * 100:.0f}%",
        f"Active tasks: {candidate.active_task_count}",
        f"Budget remaining: ${candidate.budget_remaining:.2f}",
        f"Score: {breakdown.total:.2f}",
    ]
    return " | ".join(parts)


def select_best(
    candidates: Sequence[AgentCandidate],
    task_type: str,
) -> tuple[AgentCandidate, ScoreBreakdown] | None:
    """Highest scoring eligible candidate; the first one seen wins a tie."""

    eligible = [candidate for candidate in candidates if is_eligible(candidate, task_type)]
    if not eligible:
        return None
    max_active = max((candidate.active_task_count for candidate in candidates), default=0)

    best: tuple[AgentCandidate, ScoreBreakdown] | None = None
    for candidate in eligible:
        breakdown = score_candidate(candidate, task_type, max_active_task_count=max_active)
        if best is None or breakdown.total > best[1].total:
            best = (candidate, breakdown)
    if best is None or best[1].total <= 0:
        return None
    return best


def delegate(
    subtask: Subtask,
    subtask_index: int,
    candidates: Sequence[AgentCandidate],
) -> DelegationResult | None:
    """Assign ``subtask`` to the best eligible candidate, or ``None`` when nobody qualifies."""

    if subtask.priority is None:
        raise TaskInputError(f"Subtask {subtask.title!r} has no priority; cannot delegate.")
    picked = select_best(candidates, subtask.type)
    if picked is None:
        logger.debug("No eligible agent for subtask %d (%s)", subtask_index, subtask.type)
        return None
    candidate, breakdown = picked
    return DelegationResult(
        subtask_index=subtask_index,
        subtask=subtask,
        assigned_agent_id=candidate.id,
        assigned_agent_name=candidate.name,
        score=breakdown.total,
        reasoning=build_reasoning(candidate, breakdown),
        breakdown=breakdown,
    )


def delegate_all(
    subtasks: Iterable[Subtask],
    candidates: Sequence[AgentCandidate],
) -> list[DelegationResult]:
    """Delegate a batch, counting earlier picks toward each agent's workload.

    The input snapshots are never modified; adjusted copies are scored instead.
    """

    assigned: dict[str, int] = {}
    results: list[DelegationResult] = []
    for index, subtask in enumerate(subtasks):
        adjusted = [
            replace(
                candidate,
                active_task_count=candidate.active_task_count + assigned.get(candidate.id, 0),
            )
            if candidate.id in assigned
            else candidate
            for candidate in candidates
        ]
        result = delegate(subtask, index, adjusted)
        if result is None:
            continue
        results.append(result)
        assigned[result.assigned_agent_id] = assigned.get(result.assigned_agent_id, 0) + 1
    return results
