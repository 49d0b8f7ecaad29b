"""Suggest a scripted workflow for a task from phrases in its title and description."""

from __future__ import annotations

from dataclasses import dataclass

from mission_control.coordinator.models import TaskInput

AUTO_TRIGGER_THRESHOLD = 0.8
SUGGEST_THRESHOLD = 0.6


@dataclass(slots=True, frozen=True)
class WorkflowPattern:
    workflow_id: str
    display_name: str
    phrases: tuple[str, ...]
    confidence: float
    reasoning: str


@dataclass(slots=True, frozen=True)
class TaskAnalysis:
    task_id: str
    title: str
    description: str
    type: str
    confidence: float
    reasoning: str
    suggested_workflow: str | None = None


WORKFLOW_PATTERNS: tuple[WorkflowPattern, ...] = (
    WorkflowPattern(
        workflow_id="feature-dev",
        display_name="Feature Development",
        phrases=(
            "add feature",
            "implement feature",
            "new feature",
            "build feature",
            "create feature",
            "add functionality",
            "implement functionality",
        ),
        confidence=0.85,
        reasoning="Task appears to be a feature development request",
    ),
    WorkflowPattern(
        workflow_id="bug-fix",
        display_name="Bug Fix",
        phrases=(
            "fix bug",
            "bug fix",
            "fix issue",
            "resolve bug",
            "fix error",
            "broken",
            "not working",
            "doesn't work",
            "fails",
            "crash",
        ),
        confidence=0.9,
        reasoning="Task appears to be a bug fix request",
    ),
    WorkflowPattern(
        workflow_id="security-audit",
        display_name="Security Audit",
        phrases=(
            "security",
            "vulnerability",
            "audit",
            "cve",
            "exploit",
            "injection",
            "xss",
            "csrf",
            "authentication",
            "authorization",
        ),
        confidence=0.8,
        reasoning="Task appears to be security-related",
    ),
)

_DISPLAY_NAMES = {pattern.workflow_id: pattern.display_name for pattern in WORKFLOW_PATTERNS}


def analyze_for_workflow(task: TaskInput) -> TaskAnalysis:
    """First pattern group whose phrase occurs in the lowercased title and description."""

    combined = f"{task.title.lower()} {task.description.lower()}"
    for pattern in WORKFLOW_PATTERNS:
        if any(phrase in combined for phrase in pattern.phrases):
            return TaskAnalysis(
                task_id=task.id,
                title=task.title,
                description=task.description,
                type=task.type,
                confidence=pattern.confidence,
                reasoning=pattern.reasoning,
                suggested_workflow=pattern.workflow_id,
            )
    return TaskAnalysis(
        task_id=task.id,
        title=task.title,
        description=task.description,
        type=task.type,
        confidence=0.0,
        reasoning="No workflow pattern matched",
    )


def should_auto_trigger(analysis: TaskAnalysis, threshold: float = AUTO_TRIGGER_THRESHOLD) -> bool:
    return analysis.suggested_workflow is not None and analysis.confidence >= threshold


def get_workflow_recommendation(analysis: TaskAnalysis) -> str | None:
    """Operator-facing suggestion text, or ``None`` when confidence is too low."""

    if analysis.suggested_workflow is None:
        return None
    name = _DISPLAY_NAMES.get(analysis.suggested_workflow, analysis.suggested_workflow)
    percent = round(analysis.confidence * 100)
    if analysis.confidence >= AUTO_TRIGGER_THRESHOLD:
        return (
            f"This task is a good candidate for the {name} workflow "
            f"({percent}% confidence). Would you like to use it?"
        )
    if analysis.confidence >= SUGGEST_THRESHOLD:
        return f"This task might benefit from the {name} workflow ({percent}% confidence)."
    return None
