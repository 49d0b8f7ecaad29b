"""File-based contracts: coordinator snapshot input and JSON output."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from mission_control.common import from_iso
from mission_control.coordinator.loop import CoordinatorState
from mission_control.coordinator.models import AgentCandidate, PerformanceHistory, TaskSnapshot


class SnapshotError(ValueError):
    """Snapshot file is missing, not JSON, or has the wrong shape."""


@dataclass(slots=True)
class CoordinatorSnapshot:
    """Everything one tick or graph report needs, as read from disk."""

    state: CoordinatorState
    now: datetime | None = None
    estimates: dict[str, float] = field(default_factory=dict)


def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True, default=_json_default),
        "utf-8",
    )


def dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON document and validate top-level object type."""

    try:
        payload = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as error:
        raise SnapshotError(f"Snapshot file not found: {path}") from error
    except json.JSONDecodeError as error:
        raise SnapshotError(f"Invalid JSON in {path}: {error}") from error
    if not isinstance(payload, dict):
        raise SnapshotError(f"Expected JSON object in {path}")
    return payload


def read_snapshot(path: Path) -> CoordinatorSnapshot:
    """Read a coordinator snapshot.

    Shape: ``{"now"?, "tasks": [...], "inbox_tasks"?: [...], "agents"?: [...], "estimates"?: {}}``.
    """

    payload = load_json(path)
    try:
        return parse_snapshot(payload)
    except (TypeError, ValueError) as error:
        raise SnapshotError(f"Invalid snapshot at {path}: {error}") from error


def parse_snapshot(payload: dict[str, Any]) -> CoordinatorSnapshot:
    tasks = [_parse_task(item, where=f"tasks[{i}]") for i, item in enumerate(_array(payload, "tasks"))]
    inbox = [
        _parse_task(item, where=f"inbox_tasks[{i}]")
        for i, item in enumerate(_array(payload, "inbox_tasks"))
    ]
    agents = [
        _parse_agent(item, where=f"agents[{i}]") for i, item in enumerate(_array(payload, "agents"))
    ]

    now_raw = payload.get("now")
    if now_raw is not None and not isinstance(now_raw, str):
        raise TypeError("snapshot.now must be an ISO datetime string")

    estimates_raw = payload.get("estimates", {})
    if not isinstance(estimates_raw, dict):
        raise TypeError("snapshot.estimates must be an object")
    estimates: dict[str, float] = {}
    for task_id, minutes in estimates_raw.items():
        if isinstance(minutes, bool) or not isinstance(minutes, int | float) or minutes < 0:
            raise ValueError(f"snapshot.estimates[{task_id!r}] must be a non-negative number")
        estimates[str(task_id)] = float(minutes)

    return CoordinatorSnapshot(
        state=CoordinatorState(inbox_tasks=inbox, all_tasks=tasks, available_agents=agents),
        now=from_iso(now_raw) if now_raw else None,
        estimates=estimates,
    )


def _array(payload: dict[str, Any], key: str) -> list[Any]:
    value = payload.get(key, [])
    if not isinstance(value, list):
        raise TypeError(f"snapshot.{key} must be an array")
    return value


def _str_list(item: dict[str, Any], key: str, *, where: str) -> tuple[str, ...]:
    value = item.get(key, [])
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise TypeError(f"{where}.{key} must be an array of strings")
    return tuple(value)


def _required_str(item: dict[str, Any], key: str, *, where: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{where}.{key} must be a non-empty string")
    return value


def _parse_task(item: Any, *, where: str) -> TaskSnapshot:
    if not isinstance(item, dict):
        raise TypeError(f"{where} must be an object")
    priority = item.get("priority", 3)
    if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
        raise TypeError(f"{where}.priority must be an integer or null")
    last_activity = item.get("last_activity_at")
    if last_activity is not None and not isinstance(last_activity, str):
        raise TypeError(f"{where}.last_activity_at must be an ISO datetime string")
    return TaskSnapshot(
        id=_required_str(item, "id", where=where),
        title=str(item.get("title", "")),
        status=str(item.get("status", "INBOX")).upper(),
        description=str(item.get("description", "")),
        type=str(item.get("type", "")).upper(),
        priority=priority,
        depends_on=_str_list(item, "depends_on", where=where),
        assignee_ids=_str_list(item, "assignee_ids", where=where),
        last_activity_at=from_iso(last_activity) if last_activity else None,
    )


def _parse_agent(item: Any, *, where: str) -> AgentCandidate:
    if not isinstance(item, dict):
        raise TypeError(f"{where} must be an object")
    performance_raw = item.get("performance")
    performance: PerformanceHistory | None = None
    if performance_raw is not None:
        if not isinstance(performance_raw, dict):
            raise TypeError(f"{where}.performance must be an object")
        performance = PerformanceHistory(
            success_count=int(performance_raw.get("success_count", 0)),
            failure_count=int(performance_raw.get("failure_count", 0)),
            avg_cost_usd=float(performance_raw.get("avg_cost_usd", 0.0)),
            avg_duration_ms=float(performance_raw.get("avg_duration_ms", 0.0)),
        )
    score = item.get("performance_score")
    return AgentCandidate(
        id=_required_str(item, "id", where=where),
        name=str(item.get("name", item["id"])),
        role=str(item.get("role", "SPECIALIST")).upper(),
        status=str(item.get("status", "ACTIVE")).upper(),
        allowed_task_types=tuple(t.upper() for t in _str_list(item, "allowed_task_types", where=where)),
        capabilities=_str_list(item, "capabilities", where=where),
        budget_remaining=float(item.get("budget_remaining", 0.0)),
        active_task_count=int(item.get("active_task_count", 0)),
        performance_score=float(score) if score is not None else None,
        performance=performance,
    )
