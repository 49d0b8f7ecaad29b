from __future__ import annotations

import allure

from mission_control.coordinator import (
    TaskInput,
    analyze_for_workflow,
    get_workflow_recommendation,
    should_auto_trigger,
)

pytestmark = [
    allure.epic("Coordinator"),
    allure.feature("Workflow Suggestions"),
]


def _task(title: str, description: str = "") -> TaskInput:
    return TaskInput(id="t", title=title, description=description, type="ENGINEERING", priority=3)


def test_bug_fix_is_auto_triggered() -> None:
    analysis = analyze_for_workflow(_task("Checkout page is broken"))
    assert analysis.suggested_workflow == "bug-fix"
    assert should_auto_trigger(analysis)
    assert get_workflow_recommendation(analysis) == (
        "This task is a good candidate for the Bug Fix workflow (90% confidence). "
        "Would you like to use it?"
    )


def test_first_matching_group_wins() -> None:
    analysis = analyze_for_workflow(_task("Add feature", "with authentication"))
    assert analysis.suggested_workflow == "feature-dev"
    assert analysis.confidence == 0.85


def test_no_match_has_no_recommendation() -> None:
    analysis = analyze_for_workflow(_task("Rename a variable"))
    assert analysis.suggested_workflow is None
    assert not should_auto_trigger(analysis)
    assert get_workflow_recommendation(analysis) is None


def test_custom_threshold() -> None:
    analysis = analyze_for_workflow(_task("Run a security review"))
    assert analysis.suggested_workflow == "security-audit"
    assert should_auto_trigger(analysis)
    assert not should_auto_trigger(analysis, threshold=0.95)
