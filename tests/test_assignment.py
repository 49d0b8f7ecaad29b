from __future__ import annotations

from datetime import UTC, datetime

import allure
import pytest

from mission_control.coordinator import (
    AgentCandidate,
    TaskSnapshot,
    auto_assign,
    compute_workloads,
    recommend_agents,
)
from mission_control.state_machine import TaskStatus

pytestmark = [
    allure.epic("Coordinator"),
    allure.feature("Auto Assignment"),
]

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)

ROSTER = [
    AgentCandidate(
        id="a",
        name="Ada",
        role="LEAD",
        status="ACTIVE",
        allowed_task_types=("ENGINEERING",),
        budget_remaining=5.0,
    ),
    AgentCandidate(
        id="b",
        name="Bea",
        role="SPECIALIST",
        status="ACTIVE",
        allowed_task_types=("ENGINEERING",),
        budget_remaining=5.0,
    ),
    AgentCandidate(
        id="c",
        name="Cy",
        role="LEAD",
        status="OFFLINE",
        allowed_task_types=("ENGINEERING",),
        budget_remaining=5.0,
    ),
]

TASKS = [
    TaskSnapshot(id="t1", title="one", status="IN_PROGRESS", assignee_ids=("a",)),
    TaskSnapshot(id="t2", title="two", status=TaskStatus.ASSIGNED, assignee_ids=("a",)),
    TaskSnapshot(id="t3", title="three", status="DONE", assignee_ids=("b",)),
]


def test_compute_workloads_counts_active_assignments() -> None:
    assert compute_workloads(TASKS) == {"a": 2}


def test_recommend_agents_ranks_eligible_agents() -> None:
    ranked = recommend_agents("ENGINEERING", ROSTER, TASKS)
    assert [item.agent_id for item in ranked] == ["b", "a"]
    assert ranked[0].score == pytest.approx(0.88)
    assert ranked[1].workload == 2
    assert recommend_agents("ENGINEERING", ROSTER, TASKS, limit=1)[0].agent_id == "b"


def test_auto_assign_picks_least_loaded_agent() -> None:
    task = TaskSnapshot(id="t4", title="four", status="INBOX", type="ENGINEERING")
    outcome = auto_assign(task, ROSTER, TASKS, actor_id="scheduler", now=NOW)
    assert outcome.success
    assert outcome.agent_id == "b"
    assert outcome.assignee_ids == ("b",)
    assert outcome.status is TaskStatus.ASSIGNED
    event = outcome.event
    assert event is not None
    assert event.action == "AUTO_ASSIGNED"
    assert event.description == "Auto-assigned task to Bea (score: 0.88)"
    assert event.actor_type == "SYSTEM"
    assert event.created_at == NOW
    assert event.details["breakdown"]["skill_match"] == 1.0


def test_auto_assign_skips_current_assignees() -> None:
    task = TaskSnapshot(
        id="t5",
        title="five",
        status="ASSIGNED",
        type="ENGINEERING",
        assignee_ids=("b",),
    )
    outcome = auto_assign(task, ROSTER, TASKS, actor="human")
    assert outcome.agent_id == "a"
    assert outcome.assignee_ids == ("b", "a")
    assert outcome.status is None
    assert outcome.event is not None
    assert outcome.event.actor_type == "HUMAN"


def test_auto_assign_without_candidates_fails() -> None:
    task = TaskSnapshot(id="t6", title="six", status="INBOX", type="CONTENT")
    outcome = auto_assign(task, ROSTER, TASKS)
    assert not outcome.success
    assert outcome.error == "No suitable agent found"
    assert outcome.event is None
