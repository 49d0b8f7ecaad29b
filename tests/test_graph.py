from __future__ import annotations

import allure
import pytest

from mission_control.coordinator import (
    CycleError,
    TaskSnapshot,
    build_dependency_graph,
    critical_path,
    detect_cycles,
    find_ready_tasks,
    topological_sort,
)

pytestmark = [
    allure.epic("Coordinator"),
    allure.feature("Dependency Graph"),
]


def _diamond(reverse: bool = False) -> list[TaskSnapshot]:
    tasks = [
        TaskSnapshot(id="1", title="one", status="DONE"),
        TaskSnapshot(id="2", title="two", status="INBOX", depends_on=("1",)),
        TaskSnapshot(id="3", title="three", status="INBOX", depends_on=("2",)),
        TaskSnapshot(id="4", title="four", status="INBOX", depends_on=("2",)),
        TaskSnapshot(id="5", title="five", status="INBOX", depends_on=("3", "4")),
    ]
    return list(reversed(tasks)) if reverse else tasks


def test_graph_records_edges_and_back_references() -> None:
    graph = build_dependency_graph(_diamond())
    assert len(graph.edges) == 5
    assert graph.nodes["2"].depended_on_by == ["3", "4"]
    assert graph.nodes["5"].depends_on == ["3", "4"]


def test_duplicate_dependencies_are_collapsed() -> None:
    graph = build_dependency_graph(
        [
            TaskSnapshot(id="a", title="a", status="INBOX"),
            TaskSnapshot(id="b", title="b", status="INBOX", depends_on=("a", "a")),
        ],
    )
    assert len(graph.edges) == 1
    assert graph.nodes["a"].depended_on_by == ["b"]


def test_only_unblocked_task_is_ready() -> None:
    assert find_ready_tasks(build_dependency_graph(_diamond())) == ["2"]


def test_in_progress_and_missing_dependencies_are_not_ready() -> None:
    graph = build_dependency_graph(
        [
            TaskSnapshot(id="a", title="a", status="IN_PROGRESS"),
            TaskSnapshot(id="b", title="b", status="INBOX", depends_on=("ghost",)),
            TaskSnapshot(id="c", title="c", status="BLOCKED"),
        ],
    )
    assert find_ready_tasks(graph) == ["c"]
    assert graph.nodes["b"].depends_on == ["ghost"]
    assert [(edge.from_id, edge.to_id) for edge in graph.edges] == [("ghost", "b")]


def test_custom_terminal_statuses() -> None:
    graph = build_dependency_graph(
        [
            TaskSnapshot(id="a", title="a", status="FAILED"),
            TaskSnapshot(id="b", title="b", status="INBOX", depends_on=("a",)),
        ],
    )
    assert find_ready_tasks(graph) == []
    assert find_ready_tasks(graph, terminal_statuses={"DONE", "CANCELED", "FAILED"}) == ["b"]


@pytest.mark.parametrize("status", ["DONE", "CANCELED", "FAILED"])
def test_terminal_task_without_dependencies_is_not_ready(status: str) -> None:
    graph = build_dependency_graph([TaskSnapshot(id="a", title="a", status=status)])
    assert find_ready_tasks(graph) == []
    assert find_ready_tasks(graph, terminal_statuses={"DONE"}) == []


@pytest.mark.parametrize("reverse", [False, True])
def test_topological_sort_puts_dependencies_first(reverse: bool) -> None:
    graph = build_dependency_graph(_diamond(reverse=reverse))
    order = topological_sort(graph)
    assert sorted(order) == ["1", "2", "3", "4", "5"]
    for edge in graph.edges:
        assert order.index(edge.from_id) < order.index(edge.to_id)


def test_topological_sort_raises_on_cycle() -> None:
    graph = build_dependency_graph(
        [
            TaskSnapshot(id="a", title="a", status="INBOX", depends_on=("b",)),
            TaskSnapshot(id="b", title="b", status="INBOX", depends_on=("a",)),
        ],
    )
    with pytest.raises(CycleError, match="involving task: a") as info:
        topological_sort(graph)
    assert info.value.cycle == ["a", "b", "a"]
    assert detect_cycles(graph) == [["a", "b", "a"]]


def test_detect_cycles_is_empty_for_acyclic_graph() -> None:
    assert detect_cycles(build_dependency_graph(_diamond())) == []


def test_critical_path_follows_longest_chain() -> None:
    graph = build_dependency_graph(_diamond())
    path = critical_path(graph, {"1": 10, "2": 20, "3": 30, "4": 15, "5": 5})
    assert path.path == ["1", "2", "3", "5"]
    assert path.total_minutes == 65


def test_critical_path_of_empty_graph() -> None:
    path = critical_path(build_dependency_graph([]), {})
    assert path.path == []
    assert path.total_minutes == 0
