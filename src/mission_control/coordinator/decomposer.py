"""Structural task decomposition driven by per-type strategy tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mission_control.coordinator.models import (
    DecompositionResult,
    Subtask,
    TaskInput,
    TaskInputError,
)

logger = logging.getLogger(__name__)

GENERIC_STRATEGY_NAME = "generic"


@dataclass(slots=True, frozen=True)
class DecompositionPhase:
    """One row of a strategy table."""

    verb: str
    description: str
    estimated_minutes: int
    deliverable: str
    depends_on: tuple[int, ...] = ()
    required_capabilities: tuple[str, ...] = ()
    subtask_type: str | None = None


@dataclass(slots=True, frozen=True)
class DecompositionStrategy:
    """Named, ordered phase list."""

    name: str
    phases: tuple[DecompositionPhase, ...]


@dataclass(slots=True, frozen=True)
class WorkflowAgent:
    """Agent slot declared by a workflow definition."""

    id: str
    persona: str


@dataclass(slots=True, frozen=True)
class WorkflowStep:
    """One sequential step of a workflow definition."""

    id: str
    agent: str
    input: str
    expects: str
    retry_limit: int = 0
    timeout_minutes: int = 30


@dataclass(slots=True, frozen=True)
class WorkflowDefinition:
    """Deterministic multi-step script used instead of a strategy table."""

    id: str
    name: str
    description: str
    agents: tuple[WorkflowAgent, ...]
    steps: tuple[WorkflowStep, ...]


STRATEGIES: dict[str, DecompositionStrategy] = {
    "ENGINEERING": DecompositionStrategy(
        name="engineering",
        phases=(
            DecompositionPhase(
                verb="Research",
                description="Investigate requirements and existing code",
                subtask_type="RESEARCH",
                estimated_minutes=30,
                required_capabilities=("code_analysis", "research"),
                deliverable="Research summary with approach recommendation",
            ),
            DecompositionPhase(
                verb="Implement",
                description="Write the core implementation",
                estimated_minutes=60,
                depends_on=(0,),
                required_capabilities=("code_generation", "file_operations"),
                deliverable="Working implementation with inline comments",
            ),
            DecompositionPhase(
                verb="Test",
                description="Write and run tests",
                estimated_minutes=30,
                depends_on=(1,),
                required_capabilities=("testing", "code_generation"),
                deliverable="Test suite with passing results",
            ),
            DecompositionPhase(
                verb="Document",
                description="Update documentation",
                subtask_type="DOCS",
                estimated_minutes=15,
                depends_on=(1,),
                required_capabilities=("documentation",),
                deliverable="Updated docs reflecting the changes",
            ),
        ),
    ),
    "CONTENT": DecompositionStrategy(
        name="content",
        phases=(
            DecompositionPhase(
                verb="Research",
                description="Research topic and gather sources",
                subtask_type="CUSTOMER_RESEARCH",
                estimated_minutes=20,
                required_capabilities=("research", "web_search"),
                deliverable="Research brief with key points and sources",
            ),
            DecompositionPhase(
                verb="Draft",
                description="Write the first draft",
                estimated_minutes=40,
                depends_on=(0,),
                required_capabilities=("content_creation",),
                deliverable="Complete first draft",
            ),
            DecompositionPhase(
                verb="Review",
                description="Review and revise for quality",
                estimated_minutes=20,
                depends_on=(1,),
                required_capabilities=("content_review", "editing"),
                deliverable="Polished final draft",
            ),
        ),
    ),
    "OPS": DecompositionStrategy(
        name="operations",
        phases=(
            DecompositionPhase(
                verb="Audit",
                description="Audit current state and identify gaps",
                estimated_minutes=20,
                required_capabilities=("system_audit", "monitoring"),
                deliverable="Audit report with findings",
            ),
            DecompositionPhase(
                verb="Plan",
                description="Create execution plan",
                estimated_minutes=15,
                depends_on=(0,),
                required_capabilities=("planning",),
                deliverable="Step-by-step execution plan",
            ),
            DecompositionPhase(
                verb="Execute",
                description="Execute the planned changes",
                estimated_minutes=30,
                depends_on=(1,),
                required_capabilities=("system_operations",),
                deliverable="Completed operation with verification",
            ),
        ),
    ),
}

GENERIC_STRATEGY = DecompositionStrategy(
    name=GENERIC_STRATEGY_NAME,
    phases=(
        DecompositionPhase(
            verb="Research",
            description="Investigate and plan approach",
            estimated_minutes=20,
            required_capabilities=("research",),
            deliverable="Approach recommendation",
        ),
        DecompositionPhase(
            verb="Execute",
            description="Perform the main work",
            estimated_minutes=45,
            depends_on=(0,),
            deliverable="Completed deliverable",
        ),
        DecompositionPhase(
            verb="Review",
            description="Quality check the output",
            estimated_minutes=15,
            depends_on=(1,),
            required_capabilities=("review",),
            deliverable="Quality-verified output",
        ),
    ),
)

PERSONA_TASK_TYPES: dict[str, str] = {
    "Strategist": "PLANNING",
    "Coder": "ENGINEERING",
    "QA": "TESTING",
    "Operations": "OPS",
    "Compliance": "COMPLIANCE",
    "Coordinator": "COORDINATION",
}


def get_strategy(task_type: str) -> DecompositionStrategy:
    """Strategy for ``task_type``; unmatched types get the generic strategy."""

    return STRATEGIES.get(task_type.strip().upper(), GENERIC_STRATEGY)


def decompose(task: TaskInput, workflow: WorkflowDefinition | None = None) -> DecompositionResult:
    """Split ``task`` into dependency-ordered subtasks.

    Every subtask inherits the parent priority. A task without any priority is
    rejected with :class:`TaskInputError`; range clamping is the loop's job.
    """

    if task.priority is None:
        raise TaskInputError(f"Task {task.id!r} has no priority; cannot decompose.")
    if workflow is not None:
        return _decompose_from_workflow(task, workflow)

    strategy = get_strategy(task.type)
    subtasks = [
        Subtask(
            title=f"{phase.verb}: {task.title}",
            description=f"{phase.description} for: {task.description}",
            type=phase.subtask_type or task.type,
            priority=task.priority,
            estimated_minutes=phase.estimated_minutes,
            depends_on=phase.depends_on,
            required_capabilities=phase.required_capabilities,
            deliverable=phase.deliverable,
        )
        for phase in strategy.phases
    ]
    logger.debug("Decomposed task %s with %s strategy", task.id, strategy.name)
    return DecompositionResult(
        parent_task_id=task.id,
        subtasks=subtasks,
        reasoning=(
            f'Decomposed "{task.title}" into {len(subtasks)} subtasks '
            f"using {strategy.name} strategy"
        ),
        estimated_total_minutes=sum(subtask.estimated_minutes for subtask in subtasks),
        strategy=strategy.name,
    )


def _decompose_from_workflow(task: TaskInput, workflow: WorkflowDefinition) -> DecompositionResult:
    personas = {agent.id: agent.persona for agent in workflow.agents}
    subtasks: list[Subtask] = []
    for index, step in enumerate(workflow.steps):
        persona = personas.get(step.agent, "")
        first_line = step.input.split("\n", 1)[0]
        subtasks.append(
            Subtask(
                title=f"{step.id}: {task.title}",
                description=f"Workflow step: {step.id}. {first_line}",
                type=PERSONA_TASK_TYPES.get(persona, "ENGINEERING"),
                priority=task.priority,
                estimated_minutes=step.timeout_minutes,
                depends_on=(index - 1,) if index > 0 else (),
                required_capabilities=(persona,) if persona else (),
                deliverable=f"Complete {step.id} with: {step.expects}",
            ),
        )
    return DecompositionResult(
        parent_task_id=task.id,
        subtasks=subtasks,
        reasoning=(
            f'Decomposed "{task.title}" into {len(subtasks)} subtasks '
            f"using {workflow.name} workflow"
        ),
        estimated_total_minutes=sum(subtask.estimated_minutes for subtask in subtasks),
        strategy=f"workflow:{workflow.id}",
        workflow_id=workflow.id,
    )
