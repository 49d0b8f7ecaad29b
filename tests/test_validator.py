from __future__ import annotations

import allure

from mission_control.state_machine import (
    TaskStatus,
    TransitionActor,
    TransitionContext,
    can_actor_transition,
    explain_transition,
    get_valid_next_statuses,
    validate_transition,
    validate_transitions,
)

pytestmark = [
    allure.epic("Task State Machine"),
    allure.feature("Transition Validation"),
]


def test_agent_cannot_complete_review() -> None:
    result = validate_transition(
        TransitionContext(from_status="REVIEW", to_status="DONE", actor="agent"),
    )
    assert not result.valid
    assert result.error is not None
    assert "not allowed" in result.error
    assert "Allowed actors: human" in result.error


def test_human_with_approval_record_completes_review() -> None:
    result = validate_transition(
        TransitionContext(
            from_status="REVIEW",
            to_status="DONE",
            actor="human",
            artifacts={"approvalRecord": "ok"},
        ),
    )
    assert result.valid
    assert result.error is None
    assert result.warning is None


def test_unknown_path_is_rejected_before_actor_check() -> None:
    result = validate_transition(
        TransitionContext(from_status="INBOX", to_status="DONE", actor="robot"),
    )
    assert not result.valid
    assert result.error == (
        "Invalid transition: INBOX -> DONE. This transition is not allowed."
    )


def test_unknown_status_is_reported_as_invalid_path() -> None:
    result = validate_transition(
        TransitionContext(from_status="ARCHIVED", to_status="INBOX", actor="human"),
    )
    assert not result.valid
    assert "ARCHIVED -> INBOX" in (result.error or "")


def test_missing_artifacts_are_listed() -> None:
    result = validate_transition(
        TransitionContext(
            from_status=TaskStatus.IN_PROGRESS,
            to_status=TaskStatus.REVIEW,
            actor=TransitionActor.AGENT,
            artifacts={"deliverable": "   ", "selfReview": None},
        ),
    )
    assert not result.valid
    assert result.error == (
        "Missing required artifacts for IN_PROGRESS -> REVIEW: deliverable, selfReview"
    )


def test_empty_list_artifact_counts_as_missing() -> None:
    result = validate_transition(
        TransitionContext(
            from_status="INBOX",
            to_status="ASSIGNED",
            actor="system",
            artifacts={"assigneeIds": []},
        ),
    )
    assert not result.valid
    assert "assigneeIds" in (result.error or "")


def test_reopening_terminal_status_warns() -> None:
    result = validate_transition(
        TransitionContext(from_status="DONE", to_status="REVIEW", actor="human"),
    )
    assert result.valid
    assert result.warning == "Transitioning from terminal state DONE. This should be rare."


def test_validate_transitions_checks_each_independently() -> None:
    results = validate_transitions(
        [
            TransitionContext(from_status="INBOX", to_status="CANCELED", actor="human"),
            TransitionContext(from_status="INBOX", to_status="CANCELED", actor="agent"),
        ],
    )
    assert [result.valid for result in results] == [True, False]


def test_get_valid_next_statuses_filters_by_actor() -> None:
    assert get_valid_next_statuses("ASSIGNED", "agent") == [TaskStatus.IN_PROGRESS]
    assert get_valid_next_statuses("CANCELED", "human") == []
    assert get_valid_next_statuses("nonsense", "human") == []


def test_can_actor_transition() -> None:
    assert can_actor_transition(TaskStatus.BLOCKED, TransitionActor.SYSTEM)
    assert not can_actor_transition(TaskStatus.DONE, TransitionActor.AGENT)


def test_explain_transition_ignores_artifacts() -> None:
    assert explain_transition("REVIEW", "DONE", "human") == (
        "Valid transition: Approve and complete task (human only)"
    )
    assert explain_transition("REVIEW", "DONE", "agent").startswith("Actor 'agent'")
