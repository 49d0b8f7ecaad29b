"""Task dependency graph: construction, ordering, cycles, readiness and critical path.

Edges point from a dependency toward its dependent. Graphs are rebuilt from a
task snapshot on every coordination tick and are never persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from mission_control.coordinator.models import TaskSnapshot
from mission_control.state_machine import TERMINAL_STATUSES, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_STATUSES: frozenset[str] = frozenset(
    {TaskStatus.DONE.value, TaskStatus.CANCELED.value},
)
_CLOSED: frozenset[str] = frozenset(status.value for status in TERMINAL_STATUSES)


class CycleError(ValueError):
    """Raised when ordering is requested for a graph that contains a cycle."""

    def __init__(self, node_id: str, cycle: list[str]) -> None:
        super().__init__(f"Circular dependency detected involving task: {node_id}")
        self.node_id = node_id
        self.cycle = cycle


@dataclass(slots=True)
class DependencyNode:
    id: str
    title: str
    status: str
    depends_on: list[str] = field(default_factory=list)
    depended_on_by: list[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DependencyEdge:
    from_id: str
    to_id: str


@dataclass(slots=True)
class DependencyGraph:
    nodes: dict[str, DependencyNode]
    edges: list[DependencyEdge]


@dataclass(slots=True, frozen=True)
class CriticalPath:
    path: list[str]
    total_minutes: float


def _status_value(status: TaskStatus | str) -> str:
    return status.value if isinstance(status, TaskStatus) else str(status).upper()


def build_dependency_graph(tasks: Iterable[TaskSnapshot]) -> DependencyGraph:
    """Build nodes, edges and back-references from each task's ``depends_on``.

    An edge is recorded for every dependency id, including ids missing from the
    snapshot; back-references are only kept on nodes that exist.
    """

    snapshot = list(tasks)
    nodes: dict[str, DependencyNode] = {}
    for task in snapshot:
        nodes[task.id] = DependencyNode(
            id=task.id,
            title=task.title,
            status=_status_value(task.status),
            depends_on=list(dict.fromkeys(task.depends_on)),
        )

    edges: list[DependencyEdge] = []
    for node in nodes.values():
        for dependency_id in node.depends_on:
            edges.append(DependencyEdge(from_id=dependency_id, to_id=node.id))
            dependency = nodes.get(dependency_id)
            if dependency is not None:
                dependency.depended_on_by.append(node.id)
    return DependencyGraph(nodes=nodes, edges=edges)


def _known_dependencies(graph: DependencyGraph, node_id: str) -> Iterator[str]:
    node = graph.nodes.get(node_id)
    if node is None:
        return iter(())
    return (dependency for dependency in node.depends_on if dependency in graph.nodes)


def topological_sort(graph: DependencyGraph) -> list[str]:
    """Return task ids with every dependency before its dependents.

    Raises :class:`CycleError` as soon as a node on the active DFS path is reached again.
    """

    visited: set[str] = set()
    order: list[str] = []
    for root in graph.nodes:
        if root in visited:
            continue
        path = [root]
        on_path = {root}
        stack = [(root, _known_dependencies(graph, root))]
        while stack:
            node_id, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                path.pop()
                on_path.discard(node_id)
                visited.add(node_id)
                order.append(node_id)
                continue
            if child in visited:
                continue
            if child in on_path:
                cycle = [*path[path.index(child) :], child]
                logger.warning("Dependency cycle: %s", " -> ".join(cycle))
                raise CycleError(child, cycle)
            path.append(child)
            on_path.add(child)
            stack.append((child, _known_dependencies(graph, child)))
    return order


def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Every cycle met during a full DFS, each as a closed path; empty when acyclic."""

    cycles: list[list[str]] = []
    visited: set[str] = set()
    for root in graph.nodes:
        if root in visited:
            continue
        path = [root]
        on_path = {root}
        stack = [(root, _known_dependencies(graph, root))]
        while stack:
            node_id, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                path.pop()
                on_path.discard(node_id)
                visited.add(node_id)
                continue
            if child in on_path:
                cycles.append([*path[path.index(child) :], child])
                continue
            if child in visited:
                continue
            path.append(child)
            on_path.add(child)
            stack.append((child, _known_dependencies(graph, child)))
    return cycles


def find_ready_tasks(
    graph: DependencyGraph,
    terminal_statuses: Collection[str] = DEFAULT_TERMINAL_STATUSES,
) -> list[str]:
    """Ids that are not terminal or IN_PROGRESS and whose dependencies are all satisfied.

    ``terminal_statuses`` only decides which dependency statuses count as
    satisfied; a task in any terminal status is never ready itself. A
    dependency missing from the graph is never satisfied.
    """

    terminal = {_status_value(status) for status in terminal_statuses}
    ready: list[str] = []
    for node_id, node in graph.nodes.items():
        if node.status in _CLOSED or node.status == TaskStatus.IN_PROGRESS.value:
            continue
        if all(
            dependency in graph.nodes and graph.nodes[dependency].status in terminal
            for dependency in node.depends_on
        ):
            ready.append(node_id)
    return ready


def critical_path(
    graph: DependencyGraph,
    estimated_minutes: Mapping[str, float],
) -> CriticalPath:
    """Longest minute-weighted chain starting at a root (a node with no dependencies).

    Ties keep the first branch in ``depended_on_by`` order and the first root
    in graph order. Raises :class:`CycleError` on cyclic graphs.
    """

    order = topological_sort(graph)
    longest: dict[str, tuple[list[str], float]] = {}
    for node_id in reversed(order):
        node = graph.nodes[node_id]
        own = estimated_minutes.get(node_id, 0)
        best_path: list[str] = []
        best_total: float = 0
        for child_id in node.depended_on_by:
            child_path, child_total = longest[child_id]
            if child_total > best_total:
                best_path, best_total = child_path, child_total
        longest[node_id] = ([node_id, *best_path], own + best_total)

    overall = CriticalPath(path=[], total_minutes=0)
    for node_id, node in graph.nodes.items():
        if node.depends_on:
            continue
        path, total = longest[node_id]
        if total > overall.total_minutes:
            overall = CriticalPath(path=path, total_minutes=total)
    return overall
