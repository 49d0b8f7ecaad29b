"""Shared test fixtures."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

_ENV_PREFIX = "MISSION_CONTROL_"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Drop MISSION_CONTROL_* variables so Settings.from_env sees defaults."""

    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def snapshot_file(tmp_path) -> Path:
    """Five-task diamond with one engineer on the roster."""

    payload = {
        "now": "2026-05-04T10:00:00+00:00",
        "tasks": [
            {"id": "1", "title": "one", "status": "done", "type": "engineering"},
            {"id": "2", "title": "two", "type": "engineering", "depends_on": ["1"]},
            {"id": "3", "title": "three", "type": "engineering", "depends_on": ["2"]},
            {"id": "4", "title": "four", "type": "engineering", "depends_on": ["2"]},
            {"id": "5", "title": "five", "type": "engineering", "depends_on": ["3", "4"]},
        ],
        "inbox_tasks": [
            {"id": "9", "title": "Write launch post", "type": "content", "priority": None},
        ],
        "agents": [
            {
                "id": "eng-1",
                "name": "Engineer",
                "role": "lead",
                "allowed_task_types": ["engineering"],
                "budget_remaining": 4.5,
                "performance": {"success_count": 3, "failure_count": 1},
            },
        ],
        "estimates": {"1": 10, "2": 20, "3": 30, "4": 15, "5": 5},
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload), "utf-8")
    return path
