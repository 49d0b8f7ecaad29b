"""Controllers for mission-control CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from mission_control.config import Settings
from mission_control.contracts import dumps, read_snapshot
from mission_control.coordinator import (
    CoordinatorActions,
    CoordinatorLoop,
    TaskInput,
    analyze_for_workflow,
    build_dependency_graph,
    critical_path,
    decompose,
    detect_cycles,
    find_ready_tasks,
    get_workflow_recommendation,
    topological_sort,
)
from mission_control.router import ContextRouter, RequestSource, RoutingContext, classify
from mission_control.scheduler import TickScheduler
from mission_control.state_machine import (
    explain_transition,
    get_valid_next_statuses,
    record_transition,
)
from mission_control.state_machine.states import parse_actor, parse_status

LIST_ARTIFACTS = frozenset({"assigneeIds"})


@dataclass(slots=True)
class ClassifyCommand:
    """CLI input for Tier-1 classification."""

    text: str


@dataclass(slots=True)
class RouteCommand:
    """CLI input for routing one request."""

    text: str
    source: str = RequestSource.HUMAN.value
    budget_remaining: float | None = None
    pending_tasks: int | None = None
    max_concurrent_tasks: int | None = None
    use_tier2: bool = False
    as_json: bool = False


@dataclass(slots=True)
class DecomposeCommand:
    """CLI input for decomposing one task."""

    title: str
    description: str
    task_type: str
    priority: int
    task_id: str = "task"


@dataclass(slots=True)
class TickCommand:
    """CLI input for a single coordination tick."""

    snapshot_path: Path


@dataclass(slots=True)
class WatchCommand:
    """CLI input for repeated coordination ticks."""

    snapshot_path: Path
    max_ticks: int | None
    emit: Callable[[str], None] = print


@dataclass(slots=True)
class GraphCommand:
    """CLI input for dependency graph analysis."""

    snapshot_path: Path


@dataclass(slots=True)
class TransitionCommand:
    """CLI input for transition validation."""

    from_status: str
    to_status: str
    actor: str
    artifacts: tuple[str, ...] = ()
    task_id: str | None = None
    actor_id: str | None = None
    reason: str | None = None


@dataclass(slots=True)
class NextStatusesCommand:
    """CLI input for reachable status listing."""

    from_status: str
    actor: str


@dataclass(slots=True)
class TransitionReport:
    """Transition check lines plus the verdict the CLI turns into an exit code."""

    valid: bool
    lines: list[str] = field(default_factory=list)


class MissionControlCliController:
    """Wires settings, snapshots and the core components for CLI commands."""

    def classify(self, command: ClassifyCommand) -> list[str]:
        result = classify(command.text)
        lines = [
            f"Intent: {result.intent.value}",
            f"Complexity: {result.complexity.value}",
            f"Task type: {result.task_type}",
            f"Confidence: {result.confidence:.2f}",
            f"Keywords: {', '.join(result.keywords) or '-'}",
        ]
        if result.detected_subtasks:
            lines.append(f"Detected subtasks: {len(result.detected_subtasks)}")
            lines.extend(f"  - {subtask}" for subtask in result.detected_subtasks)
        return lines

    def route(self, command: RouteCommand) -> list[str]:
        settings = Settings.from_env()
        settings.validate()
        tier2 = settings.tier2_classifier() if command.use_tier2 else None
        router = ContextRouter(settings.router_config(), tier2=tier2)
        context = RoutingContext(
            input=command.text,
            source=RequestSource(command.source.upper()),
            budget_remaining=command.budget_remaining,
            pending_task_count=command.pending_tasks,
            max_concurrent_tasks=(
                command.max_concurrent_tasks
                if command.max_concurrent_tasks is not None
                else settings.coordinator.max_concurrent_tasks
            ),
        )
        result = (
            asyncio.run(router.route_async(context)) if tier2 is not None else router.route(context)
        )
        if command.as_json:
            return [dumps(result.to_dict())]

        lines = [
            f"Decision: {result.decision.value}",
            f"Reasoning: {result.reasoning}",
            f"Classification: intent={result.classification.intent.value} "
            f"complexity={result.classification.complexity.value} "
            f"type={result.classification.task_type} "
            f"confidence={result.classification.confidence:.2f}",
        ]
        if result.suggested_task is not None:
            task = result.suggested_task
            lines.append(f"Suggested task: {task.title} (type={task.type} priority={task.priority})")
        if result.suggested_mission is not None:
            mission = result.suggested_mission
            lines.append(
                f"Suggested mission: {mission.title} (type={mission.type} "
                f"priority={mission.priority} subtasks={mission.estimated_subtasks})",
            )
        if result.clarify_questions:
            lines.append("Questions:")
            lines.extend(f"  - {question}" for question in result.clarify_questions)
        if result.reject_reason:
            lines.append(f"Rejected: {result.reject_reason}")
        if result.defer_reason:
            lines.append(f"Deferred: {result.defer_reason}")
        return lines

    def decompose(self, command: DecomposeCommand) -> list[str]:
        task = TaskInput(
            id=command.task_id,
            title=command.title,
            description=command.description,
            type=command.task_type.upper(),
            priority=command.priority,
        )
        result = decompose(task)
        lines = [
            result.reasoning,
            f"Strategy: {result.strategy}",
            f"Estimated total: {result.estimated_total_minutes} min",
        ]
        for index, subtask in enumerate(result.subtasks):
            depends = ",".join(str(dep) for dep in subtask.depends_on) or "-"
            lines.append(
                f"  [{index}] {subtask.title} type={subtask.type} "
                f"minutes={subtask.estimated_minutes} depends_on={depends}",
            )
        recommendation = get_workflow_recommendation(analyze_for_workflow(task))
        if recommendation:
            lines.append(f"Workflow: {recommendation}")
        return lines

    def tick(self, command: TickCommand) -> list[str]:
        settings = Settings.from_env()
        settings.validate()
        snapshot = read_snapshot(command.snapshot_path)
        actions = CoordinatorLoop(settings.coordinator_config()).tick(snapshot.state, now=snapshot.now)
        return [dumps(actions.to_dict())]

    def watch(self, command: WatchCommand) -> list[str]:
        settings = Settings.from_env()
        settings.validate()

        def _sink(actions: CoordinatorActions) -> None:
            command.emit(dumps(actions.to_dict()))

        scheduler = TickScheduler(
            loop=CoordinatorLoop(settings.coordinator_config()),
            snapshot_provider=lambda: read_snapshot(command.snapshot_path),
            action_sink=_sink,
        )
        summary = scheduler.run_loop(max_ticks=command.max_ticks)
        return [
            "Watch summary: "
            f"ticks={summary.ticks} decomposed={summary.decomposed} "
            f"delegated={summary.delegated} escalated={summary.escalated} "
            f"stuck={summary.stuck} cycles={summary.cycles}",
        ]

    def graph(self, command: GraphCommand) -> list[str]:
        snapshot = read_snapshot(command.snapshot_path)
        graph = build_dependency_graph(snapshot.state.all_tasks)
        cycles = detect_cycles(graph)
        lines = [f"Tasks: {len(graph.nodes)}", f"Edges: {len(graph.edges)}"]
        if cycles:
            lines.append(f"Cycles: {len(cycles)}")
            lines.extend(f"  {' -> '.join(cycle)}" for cycle in cycles)
            lines.append("Topological order: unavailable (graph has cycles)")
        else:
            lines.append(f"Topological order: {' '.join(topological_sort(graph)) or '-'}")
            path = critical_path(graph, snapshot.estimates)
            lines.append(
                f"Critical path: {' -> '.join(path.path) or '-'} ({path.total_minutes:g} min)",
            )
        lines.append(f"Ready: {' '.join(find_ready_tasks(graph)) or '-'}")
        return lines

    def transition(self, command: TransitionCommand) -> TransitionReport:
        origin = parse_status(command.from_status)
        target = parse_status(command.to_status)
        actor = parse_actor(command.actor)
        outcome = record_transition(
            task_id=command.task_id or "-",
            from_status=origin,
            to_status=target,
            actor=actor,
            artifacts=_parse_artifacts(command.artifacts),
            actor_id=command.actor_id,
            reason=command.reason,
        )
        if outcome.record is None:
            return TransitionReport(valid=False, lines=[f"Invalid: {outcome.validation.error}"])

        lines = [explain_transition(origin, target, actor)]
        if outcome.validation.warning:
            lines.append(f"Warning: {outcome.validation.warning}")
        if command.task_id is not None:
            lines.append(dumps(outcome.record.to_event_details()))
        return TransitionReport(valid=True, lines=lines)

    def next_statuses(self, command: NextStatusesCommand) -> list[str]:
        origin = parse_status(command.from_status)
        actor = parse_actor(command.actor)
        statuses = get_valid_next_statuses(origin, actor)
        if not statuses:
            return [f"No transitions from {origin.value} for {actor.value}"]
        return [f"{origin.value} ({actor.value}) -> {', '.join(s.value for s in statuses)}"]


def _parse_artifacts(values: tuple[str, ...]) -> dict[str, object]:
    artifacts: dict[str, object] = {}
    for value in values:
        if "=" not in value:
            raise ValueError(f"Invalid artifact {value!r}. Expected format 'name=value'.")
        name, raw = value.split("=", 1)
        name = name.strip()
        if not name:
            raise ValueError(f"Invalid artifact {value!r}. Artifact name is empty.")
        if name in LIST_ARTIFACTS:
            artifacts[name] = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            artifacts[name] = raw
    return artifacts
