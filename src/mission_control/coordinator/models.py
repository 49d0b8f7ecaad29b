"""Snapshot and result types shared by the coordinator components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from mission_control.state_machine import TaskStatus


class TaskInputError(ValueError):
    """A task snapshot is structurally unusable (for example, no priority at all)."""


class AgentRole(str, Enum):
    """Agent seniority used as a tie-leaning scoring factor."""

    LEAD = "LEAD"
    SPECIALIST = "SPECIALIST"
    REVIEWER = "REVIEWER"
    CHALLENGER = "CHALLENGER"
    INTERN = "INTERN"


class AgentStatus(str, Enum):
    """Agent availability states. Only ACTIVE agents can receive work."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    DRAINED = "DRAINED"
    QUARANTINED = "QUARANTINED"
    OFFLINE = "OFFLINE"


@dataclass(slots=True, frozen=True)
class TaskInput:
    """A task handed to the decomposer."""

    id: str
    title: str
    description: str
    type: str
    priority: int | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Subtask:
    """One unit of a decomposition.

    ``depends_on`` holds indices into the same decomposition's subtask list and
    only ever references earlier entries.
    """

    title: str
    description: str
    type: str
    priority: int | None
    estimated_minutes: int
    depends_on: tuple[int, ...] = ()
    required_capabilities: tuple[str, ...] = ()
    deliverable: str = ""


@dataclass(slots=True)
class DecompositionResult:
    """Ordered subtasks produced for one parent task."""

    parent_task_id: str
    subtasks: list[Subtask]
    reasoning: str
    estimated_total_minutes: int
    strategy: str
    workflow_id: str | None = None


@dataclass(slots=True, frozen=True)
class PerformanceHistory:
    """Read-only track record of one agent on one task type."""

    success_count: int = 0
    failure_count: int = 0
    avg_cost_usd: float = 0.0
    avg_duration_ms: float = 0.0

    @property
    def total_tasks(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        total = self.total_tasks
        return self.success_count / total if total > 0 else 0.0

    @property
    def refute_count(self) -> int:
        return self.failure_count


@dataclass(slots=True, frozen=True)
class AgentCandidate:
    """Roster snapshot of one agent. Scoring never mutates it."""

    id: str
    name: str
    role: AgentRole | str
    status: AgentStatus | str
    allowed_task_types: tuple[str, ...] = ()
    capabilities: tuple[str, ...] = ()
    budget_remaining: float = 0.0
    active_task_count: int = 0
    performance_score: float | None = None
    performance: PerformanceHistory | None = None


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    """Per-factor contributions before weighting."""

    skill_match: float
    availability: float
    workload: float
    performance: float
    role: float

    @property
    def total(self) -> float:
        return (
            self.skill_match * 0.30
            + self.availability * 0.20
            + self.workload * 0.20
            + self.performance * 0.20
            + self.role * 0.10
        )

    def to_details(self) -> dict[str, float]:
        return {
            "skill_match": self.skill_match,
            "availability": self.availability,
            "workload": self.workload,
            "performance": self.performance,
            "role": self.role,
            "total": round(self.total, 4),
        }


@dataclass(slots=True, frozen=True)
class DelegationResult:
    """The agent chosen for one subtask and why."""

    subtask_index: int
    subtask: Subtask
    assigned_agent_id: str
    assigned_agent_name: str
    score: float
    reasoning: str
    breakdown: ScoreBreakdown


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """A task as seen by one coordination tick."""

    id: str
    title: str
    status: TaskStatus | str
    description: str = ""
    type: str = ""
    priority: int | None = 3
    depends_on: tuple[str, ...] = ()
    assignee_ids: tuple[str, ...] = ()
    last_activity_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class ActivityEvent:
    """Auditable event emitted alongside a decision for the caller to persist."""

    action: str
    description: str
    actor_type: str
    created_at: datetime
    task_id: str | None = None
    agent_id: str | None = None
    actor_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
