"""CLI entrypoint for mission-control."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from mission_control import __version__
from mission_control.controllers import (
    ClassifyCommand,
    DecomposeCommand,
    GraphCommand,
    MissionControlCliController,
    NextStatusesCommand,
    RouteCommand,
    TickCommand,
    TransitionCommand,
    WatchCommand,
)
from mission_control.router import RequestSource

click.rich_click.USE_MARKDOWN = True
CONTROLLER = MissionControlCliController()
T = TypeVar("T")

_SNAPSHOT_OPTION = click.option(
    "--snapshot",
    "snapshot_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
    help="Coordinator snapshot JSON (tasks, inbox_tasks, agents, estimates).",
)


@click.group()
@click.version_option(version=__version__, prog_name="mission-control")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level.",
)
def mission_control(log_level: str) -> None:
    """Routing, coordination and task state machine CLI."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@mission_control.command("classify")
@click.argument("text")
def classify_command(text: str) -> None:
    """Show the rule-based classification of a request."""

    _emit_lines(_guarded(lambda: CONTROLLER.classify(ClassifyCommand(text=text))))


@mission_control.command("route")
@click.argument("text")
@click.option(
    "--source",
    type=click.Choice([source.value for source in RequestSource], case_sensitive=False),
    default=RequestSource.HUMAN.value,
    show_default=True,
    help="Where the request came from.",
)
@click.option("--budget-remaining", type=float, default=None, help="Remaining budget.")
@click.option("--pending-tasks", type=click.IntRange(min=0), default=None, help="Pending tasks.")
@click.option(
    "--max-concurrent-tasks",
    type=click.IntRange(min=1),
    default=None,
    help=(
        "Concurrent task limit used by the capacity gate "
        "(default: MISSION_CONTROL_MAX_CONCURRENT_TASKS)."
    ),
)
@click.option(
    "--use-tier2/--no-tier2",
    default=False,
    show_default=True,
    help="Consult the configured Tier-2 classifier on low confidence.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
def route_command(  # noqa: PLR0913
    text: str,
    source: str,
    budget_remaining: float | None,
    pending_tasks: int | None,
    max_concurrent_tasks: int | None,
    use_tier2: bool,
    as_json: bool,
) -> None:
    """Decide what happens to a request."""

    _emit_lines(
        _guarded(
            lambda: CONTROLLER.route(
                RouteCommand(
                    text=text,
                    source=source,
                    budget_remaining=budget_remaining,
                    pending_tasks=pending_tasks,
                    max_concurrent_tasks=max_concurrent_tasks,
                    use_tier2=use_tier2,
                    as_json=as_json,
                ),
            ),
        ),
    )


@mission_control.command("decompose")
@click.option("--title", required=True, help="Task title.")
@click.option("--description", default="", help="Task description.")
@click.option("--type", "task_type", default="ENGINEERING", show_default=True, help="Task type.")
@click.option(
    "--priority",
    type=click.IntRange(min=1, max=4),
    default=3,
    show_default=True,
    help="1=critical, 4=nice-to-have.",
)
@click.option("--task-id", default="task", show_default=True, help="Parent task id.")
def decompose_command(
    title: str,
    description: str,
    task_type: str,
    priority: int,
    task_id: str,
) -> None:
    """Split a task into dependency-ordered subtasks."""

    _emit_lines(
        _guarded(
            lambda: CONTROLLER.decompose(
                DecomposeCommand(
                    title=title,
                    description=description,
                    task_type=task_type,
                    priority=priority,
                    task_id=task_id,
                ),
            ),
        ),
    )


@mission_control.command("tick")
@_SNAPSHOT_OPTION
def tick_command(snapshot_path: Path) -> None:
    """Run one coordination tick over a snapshot and print the actions."""

    _emit_lines(_guarded(lambda: CONTROLLER.tick(TickCommand(snapshot_path=snapshot_path))))


@mission_control.command("watch")
@_SNAPSHOT_OPTION
@click.option(
    "--max-ticks",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many ticks (default: until interrupted).",
)
def watch_command(snapshot_path: Path, max_ticks: int | None) -> None:
    """Tick on the poll interval, re-reading the snapshot before each tick."""

    _emit_lines(
        _guarded(
            lambda: CONTROLLER.watch(
                WatchCommand(snapshot_path=snapshot_path, max_ticks=max_ticks, emit=click.echo),
            ),
        ),
    )


@mission_control.command("graph")
@_SNAPSHOT_OPTION
def graph_command(snapshot_path: Path) -> None:
    """Show ordering, cycles, ready tasks and the critical path of a snapshot."""

    _emit_lines(_guarded(lambda: CONTROLLER.graph(GraphCommand(snapshot_path=snapshot_path))))


@mission_control.command("transition")
@click.option("--from", "from_status", required=True, help="Current status.")
@click.option("--to", "to_status", required=True, help="Requested status.")
@click.option("--actor", required=True, help="agent, human or system.")
@click.option(
    "--artifact",
    "artifacts",
    multiple=True,
    help="Supplied artifact as name=value. Can be repeated.",
)
@click.option("--task-id", default=None, help="Print the audit record for this task.")
@click.option("--actor-id", default=None, help="Identifier of the acting agent or user.")
@click.option("--reason", default=None, help="Free-form reason stored in the record.")
def transition_command(  # noqa: PLR0913
    from_status: str,
    to_status: str,
    actor: str,
    artifacts: tuple[str, ...],
    task_id: str | None,
    actor_id: str | None,
    reason: str | None,
) -> None:
    """Validate a status transition."""

    report = _guarded(
        lambda: CONTROLLER.transition(
            TransitionCommand(
                from_status=from_status,
                to_status=to_status,
                actor=actor,
                artifacts=artifacts,
                task_id=task_id,
                actor_id=actor_id,
                reason=reason,
            ),
        ),
    )
    _emit_lines(report.lines)
    if not report.valid:
        raise click.ClickException("Transition rejected.")


@mission_control.command("next-statuses")
@click.option("--from", "from_status", required=True, help="Current status.")
@click.option("--actor", required=True, help="agent, human or system.")
def next_statuses_command(from_status: str, actor: str) -> None:
    """List statuses an actor may move a task to."""

    _emit_lines(
        _guarded(
            lambda: CONTROLLER.next_statuses(
                NextStatusesCommand(from_status=from_status, actor=actor),
            ),
        ),
    )


def _guarded(call: Callable[[], T]) -> T:
    try:
        return call()
    except ValueError as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    mission_control()
