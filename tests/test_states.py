from __future__ import annotations

import allure
import pytest

from mission_control.state_machine import (
    STATE_DEFINITIONS,
    TERMINAL_STATUSES,
    TaskStatus,
    get_required_artifacts,
    is_terminal_status,
)
from mission_control.state_machine.states import parse_actor, parse_status

pytestmark = [
    allure.epic("Task State Machine"),
    allure.feature("Statuses"),
]


def test_every_status_has_a_definition() -> None:
    assert set(STATE_DEFINITIONS) == set(TaskStatus)
    assert len(TaskStatus) == 9


def test_terminal_statuses_include_failed() -> None:
    assert TERMINAL_STATUSES == {TaskStatus.DONE, TaskStatus.CANCELED, TaskStatus.FAILED}
    assert is_terminal_status("FAILED")
    assert not is_terminal_status(TaskStatus.BLOCKED)


def test_required_artifacts_per_status() -> None:
    assert get_required_artifacts(TaskStatus.IN_PROGRESS) == ("workPlan", "assigneeIds")
    assert get_required_artifacts("REVIEW") == ("deliverable", "selfReview")
    assert get_required_artifacts(TaskStatus.DONE) == ("deliverable", "approvalRecord")
    assert get_required_artifacts(TaskStatus.INBOX) == ()


def test_parse_status_is_case_insensitive() -> None:
    assert parse_status(" in_progress ") is TaskStatus.IN_PROGRESS


def test_parse_status_rejects_unknown_value() -> None:
    with pytest.raises(ValueError, match="Unknown task status"):
        parse_status("archived")


def test_parse_actor_is_case_insensitive() -> None:
    assert parse_actor("HUMAN").value == "human"
    with pytest.raises(ValueError, match="Unknown transition actor"):
        parse_actor("robot")
