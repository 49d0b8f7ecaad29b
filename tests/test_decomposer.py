from __future__ import annotations

import allure
import pytest

from mission_control.coordinator import (
    TaskInput,
    TaskInputError,
    WorkflowAgent,
    WorkflowDefinition,
    WorkflowStep,
    decompose,
    get_strategy,
)

pytestmark = [
    allure.epic("Coordinator"),
    allure.feature("Decomposition"),
]


def _task(task_type: str = "ENGINEERING", priority: int | None = 2) -> TaskInput:
    return TaskInput(
        id="t-1",
        title="Add SSO login",
        description="Support Google SSO",
        type=task_type,
        priority=priority,
    )


def test_engineering_strategy_phases_and_dependencies() -> None:
    result = decompose(_task())
    assert [subtask.title.split(":")[0] for subtask in result.subtasks] == [
        "Research",
        "Implement",
        "Test",
        "Document",
    ]
    assert [subtask.depends_on for subtask in result.subtasks] == [(), (0,), (1,), (1,)]
    assert [subtask.type for subtask in result.subtasks] == [
        "RESEARCH",
        "ENGINEERING",
        "ENGINEERING",
        "DOCS",
    ]
    assert result.strategy == "engineering"
    assert result.estimated_total_minutes == 135
    assert result.reasoning == 'Decomposed "Add SSO login" into 4 subtasks using engineering strategy'


def test_subtasks_inherit_priority_and_describe_parent() -> None:
    result = decompose(_task(priority=1))
    first = result.subtasks[0]
    assert all(subtask.priority == 1 for subtask in result.subtasks)
    assert first.title == "Research: Add SSO login"
    assert first.description == "Investigate requirements and existing code for: Support Google SSO"
    assert first.required_capabilities == ("code_analysis", "research")


def test_dependencies_only_point_backwards() -> None:
    for task_type in ("ENGINEERING", "CONTENT", "OPS", "SOCIAL"):
        for index, subtask in enumerate(decompose(_task(task_type)).subtasks):
            assert all(dependency < index for dependency in subtask.depends_on)


@pytest.mark.parametrize("task_type", ["ENGINEERING", "CONTENT", "SOCIAL"])
def test_decomposition_is_deterministic(task_type: str) -> None:
    first = decompose(_task(task_type))
    second = decompose(_task(task_type))
    assert len(first.subtasks) == len(second.subtasks)
    assert [subtask.title for subtask in first.subtasks] == [
        subtask.title for subtask in second.subtasks
    ]
    assert [subtask.depends_on for subtask in first.subtasks] == [
        subtask.depends_on for subtask in second.subtasks
    ]
    assert first == second


def test_unknown_type_uses_generic_strategy() -> None:
    result = decompose(_task("SOCIAL"))
    assert result.strategy == "generic"
    assert len(result.subtasks) == 3
    assert result.reasoning.endswith("into 3 subtasks using generic strategy")
    assert result.subtasks[1].type == "SOCIAL"


def test_strategy_lookup_is_case_insensitive() -> None:
    assert get_strategy(" ops ").name == "operations"


def test_missing_priority_is_rejected() -> None:
    with pytest.raises(TaskInputError, match="no priority"):
        decompose(_task(priority=None))


def test_workflow_definition_yields_sequential_chain() -> None:
    workflow = WorkflowDefinition(
        id="feature-dev",
        name="Feature Development",
        description="Plan, build and verify",
        agents=(WorkflowAgent(id="planner", persona="Strategist"), WorkflowAgent(id="dev", persona="Coder")),
        steps=(
            WorkflowStep(id="plan", agent="planner", input="Write a plan\nwith details", expects="PLAN"),
            WorkflowStep(id="build", agent="dev", input="Build it", expects="CODE", timeout_minutes=90),
            WorkflowStep(id="verify", agent="qa", input="Check it", expects="REPORT"),
        ),
    )
    result = decompose(_task(), workflow=workflow)
    assert result.strategy == "workflow:feature-dev"
    assert result.workflow_id == "feature-dev"
    assert [subtask.depends_on for subtask in result.subtasks] == [(), (0,), (1,)]
    assert [subtask.type for subtask in result.subtasks] == ["PLANNING", "ENGINEERING", "ENGINEERING"]
    assert result.subtasks[0].description == "Workflow step: plan. Write a plan"
    assert result.subtasks[2].required_capabilities == ()
    assert result.estimated_total_minutes == 150
