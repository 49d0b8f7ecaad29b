"""One coordination tick: decompose inbox work, delegate ready tasks, report problems.

The loop owns no timer and applies nothing. The caller schedules ticks one at
a time and persists the returned actions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any

from mission_control.common import clamp_priority, ensure_utc, utc_now
from mission_control.coordinator.decomposer import decompose
from mission_control.coordinator.delegator import delegate
from mission_control.coordinator.graph import (
    build_dependency_graph,
    detect_cycles,
    find_ready_tasks,
)
from mission_control.coordinator.models import (
    AgentCandidate,
    DecompositionResult,
    Subtask,
    TaskInput,
    TaskSnapshot,
)
from mission_control.state_machine import TaskStatus

logger = logging.getLogger(__name__)

NO_AGENT_REASON = "No available agent with matching capabilities"
DELEGATED_SUBTASK_MINUTES = 30


@dataclass(slots=True, frozen=True)
class CoordinatorConfig:
    """Tick tuning; every default is listed here."""

    poll_interval_ms: int = 30_000
    max_subtasks_per_decomposition: int = 7
    stuck_threshold_ms: int = 30 * 60_000
    max_concurrent_tasks: int = 10

    def validate(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive.")
        if self.max_subtasks_per_decomposition < 1:
            raise ValueError("max_subtasks_per_decomposition must be at least 1.")
        if self.stuck_threshold_ms <= 0:
            raise ValueError("stuck_threshold_ms must be positive.")
        if self.max_concurrent_tasks < 1:
            raise ValueError("max_concurrent_tasks must be at least 1.")


@dataclass(slots=True, frozen=True)
class CoordinatorState:
    """Snapshot the caller assembles before each tick."""

    inbox_tasks: Sequence[TaskSnapshot] = ()
    all_tasks: Sequence[TaskSnapshot] = ()
    available_agents: Sequence[AgentCandidate] = ()


@dataclass(slots=True, frozen=True)
class TaskDelegation:
    task_id: str
    agent_id: str
    agent_name: str
    score: float
    reasoning: str


@dataclass(slots=True, frozen=True)
class Escalation:
    task_id: str
    task_title: str
    reason: str


@dataclass(slots=True, frozen=True)
class StuckAlert:
    task_id: str
    task_title: str
    agent_id: str | None
    stuck_duration_ms: int


@dataclass(slots=True)
class CoordinatorActions:
    """Everything one tick wants the caller to apply."""

    tasks_to_decompose: list[DecompositionResult] = field(default_factory=list)
    delegations: list[TaskDelegation] = field(default_factory=list)
    escalations: list[Escalation] = field(default_factory=list)
    stuck_alerts: list[StuckAlert] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.tasks_to_decompose
            or self.delegations
            or self.escalations
            or self.stuck_alerts
            or self.cycles
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CoordinatorLoop:
    """Pure tick function plus its runtime-adjustable configuration."""

    def __init__(self, config: CoordinatorConfig | None = None) -> None:
        self._config = config or CoordinatorConfig()
        self._config.validate()

    def get_config(self) -> CoordinatorConfig:
        return self._config

    def update_config(self, **changes: Any) -> CoordinatorConfig:
        """Replace selected fields; an invalid result leaves the current config in place."""

        updated = replace(self._config, **changes)
        updated.validate()
        self._config = updated
        return updated

    def tick(self, state: CoordinatorState, now: datetime | None = None) -> CoordinatorActions:
        current = ensure_utc(now or utc_now())
        actions = CoordinatorActions()

        for task in state.inbox_tasks:
            actions.tasks_to_decompose.append(self._decompose_inbox_task(task))

        graph = build_dependency_graph(state.all_tasks)
        ready_ids = set(find_ready_tasks(graph))
        ready_tasks = [
            task
            for task in state.all_tasks
            if task.id in ready_ids and _status(task) == TaskStatus.INBOX.value
        ]

        delegated: set[str] = set()
        for task in ready_tasks:
            result = delegate(_as_subtask(task), 0, state.available_agents)
            if result is None:
                continue
            delegated.add(task.id)
            actions.delegations.append(
                TaskDelegation(
                    task_id=task.id,
                    agent_id=result.assigned_agent_id,
                    agent_name=result.assigned_agent_name,
                    score=result.score,
                    reasoning=result.reasoning,
                ),
            )

        threshold = self._config.stuck_threshold_ms
        for task in state.all_tasks:
            if _status(task) != TaskStatus.IN_PROGRESS.value or task.last_activity_at is None:
                continue
            idle_ms = int((current - ensure_utc(task.last_activity_at)).total_seconds() * 1000)
            if idle_ms > threshold:
                actions.stuck_alerts.append(
                    StuckAlert(
                        task_id=task.id,
                        task_title=task.title,
                        agent_id=task.assignee_ids[0] if task.assignee_ids else None,
                        stuck_duration_ms=idle_ms,
                    ),
                )

        for task in ready_tasks:
            if task.id not in delegated:
                logger.warning("Escalating task %s: %s", task.id, NO_AGENT_REASON)
                actions.escalations.append(
                    Escalation(task_id=task.id, task_title=task.title, reason=NO_AGENT_REASON),
                )

        actions.cycles = detect_cycles(graph)

        logger.debug(
            "Tick: %d decomposed, %d delegated, %d escalated, %d stuck, %d cycles",
            len(actions.tasks_to_decompose),
            len(actions.delegations),
            len(actions.escalations),
            len(actions.stuck_alerts),
            len(actions.cycles),
        )
        return actions

    def _decompose_inbox_task(self, task: TaskSnapshot) -> DecompositionResult:
        result = decompose(
            TaskInput(
                id=task.id,
                title=task.title,
                description=task.description,
                type=task.type,
                priority=clamp_priority(task.priority),
            ),
        )
        cap = self._config.max_subtasks_per_decomposition
        if len(result.subtasks) > cap:
            result.subtasks = result.subtasks[:cap]
            result.estimated_total_minutes = sum(
                subtask.estimated_minutes for subtask in result.subtasks
            )
        return result


def _status(task: TaskSnapshot) -> str:
    status = task.status
    return status.value if isinstance(status, TaskStatus) else str(status).upper()


def _as_subtask(task: TaskSnapshot) -> Subtask:
    return Subtask(
        title=task.title,
        description=task.description,
        type=task.type,
        priority=clamp_priority(task.priority),
        estimated_minutes=DELEGATED_SUBTASK_MINUTES,
        deliverable=task.title,
    )
