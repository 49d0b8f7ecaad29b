from __future__ import annotations

import asyncio
import logging

import allure
import pytest

from mission_control.router import (
    ClassificationResult,
    ComplexityTier,
    ContextRouter,
    ContextRouterConfig,
    IntentCategory,
    RouteDecision,
    RoutingContext,
)
from mission_control.router.router import PRIORITY_QUESTION, generate_title
from mission_control.router.rules import HELP_QUESTIONS, REJECT_SYSTEM_COMMAND, parse_routing_rules

pytestmark = [
    allure.epic("Context Router"),
    allure.feature("Routing Decisions"),
]

OAUTH_REQUEST = "Build authentication with OAuth and database schema migration"
LOGIN_FIX = "Fix the broken login button on the settings page"


class _FixedTier2:
    def __init__(self, result: ClassificationResult) -> None:
        self.result = result
        self.calls: list[str] = []

    async def classify(self, text: str, hint: ClassificationResult) -> ClassificationResult:
        self.calls.append(text)
        return self.result


class _FailingTier2:
    async def classify(self, text: str, hint: ClassificationResult) -> ClassificationResult:
        raise RuntimeError("backend unavailable")


class _SlowTier2:
    async def classify(self, text: str, hint: ClassificationResult) -> ClassificationResult:
        await asyncio.sleep(5)
        return hint


def _ops_result(confidence: float) -> ClassificationResult:
    return ClassificationResult(
        intent=IntentCategory.OPS,
        confidence=confidence,
        complexity=ComplexityTier.SIMPLE,
        task_type="OPS",
    )


def test_complex_request_goes_to_coordinator() -> None:
    result = ContextRouter().route(RoutingContext(input=OAUTH_REQUEST))
    assert result.decision is RouteDecision.COORDINATOR
    mission = result.suggested_mission
    assert mission is not None
    assert mission.title == OAUTH_REQUEST
    assert mission.type == "ENGINEERING"
    assert mission.priority == 2
    assert mission.estimated_subtasks == 5
    assert result.suggested_task is None
    assert result.reasoning.endswith("Routing to Coordinator for decomposition.")


def test_moderate_fix_becomes_single_task() -> None:
    result = ContextRouter().route(RoutingContext(input=LOGIN_FIX))
    assert result.decision is RouteDecision.SINGLE_TASK
    assert result.suggested_task is not None
    assert result.suggested_task.priority == 2
    assert result.suggested_mission is None


def test_lower_threshold_sends_moderate_work_to_coordinator() -> None:
    router = ContextRouter(ContextRouterConfig(coordinator_threshold=ComplexityTier.MODERATE))
    assert router.route(RoutingContext(input=LOGIN_FIX)).decision is RouteDecision.COORDINATOR


def test_low_confidence_asks_for_clarification() -> None:
    result = ContextRouter().route(RoutingContext(input="Bump the version number"))
    assert result.decision is RouteDecision.CLARIFY
    assert result.clarify_questions is not None
    assert len(result.clarify_questions) == 4
    assert result.clarify_questions[-1] == PRIORITY_QUESTION
    assert result.reasoning.startswith("Low confidence classification (18%).")


def test_emergency_stop_is_rejected() -> None:
    result = ContextRouter().route(RoutingContext(input="Emergency: stop all agents now"))
    assert result.decision is RouteDecision.REJECT
    assert result.reject_reason == REJECT_SYSTEM_COMMAND
    assert result.matched_rule == "emergency-stop"
    assert result.classification.complexity is ComplexityTier.TRIVIAL


def test_help_request_asks_help_questions() -> None:
    result = ContextRouter().route(RoutingContext(input="help me please"))
    assert result.decision is RouteDecision.CLARIFY
    assert result.clarify_questions == HELP_QUESTIONS


def test_full_queue_defers() -> None:
    result = ContextRouter().route(
        RoutingContext(input=OAUTH_REQUEST, pending_task_count=10, max_concurrent_tasks=10),
    )
    assert result.decision is RouteDecision.DEFER
    assert result.defer_reason == (
        "Task queue full (10 pending). Will be processed when capacity opens."
    )
    assert result.suggested_mission is None


def test_exhausted_budget_defers() -> None:
    result = ContextRouter().route(RoutingContext(input=OAUTH_REQUEST, budget_remaining=0))
    assert result.decision is RouteDecision.DEFER
    assert result.defer_reason == "Daily budget has been reached. Task will be queued for tomorrow."


def test_safety_rules_win_over_capacity_gate() -> None:
    result = ContextRouter().route(
        RoutingContext(input="shutdown everything", pending_task_count=99, max_concurrent_tasks=1),
    )
    assert result.decision is RouteDecision.REJECT


def test_custom_rule_forces_route_and_overrides() -> None:
    rules = parse_routing_rules(
        [
            {
                "name": "seo-missions",
                "patterns": ["\\bseo\\b"],
                "route": "COORDINATOR",
                "taskType": "SEO_RESEARCH",
                "priority": 1,
            },
        ],
    )
    router = ContextRouter(ContextRouterConfig(custom_rules=rules))
    result = router.route(RoutingContext(input="Check our SEO rankings"))
    assert result.decision is RouteDecision.COORDINATOR
    assert result.matched_rule == "seo-missions"
    assert result.suggested_mission is not None
    assert result.suggested_mission.type == "SEO_RESEARCH"
    assert result.suggested_mission.priority == 1
    assert result.reasoning.startswith('Matched rule "seo-missions". Classified as')


def test_custom_rules_are_checked_before_built_in_rules() -> None:
    rules = parse_routing_rules(
        [{"name": "stopwords", "patterns": ["stop ?words"], "route": "SINGLE_TASK"}],
    )
    router = ContextRouter()
    router.update_config(custom_rules=rules)
    result = router.route(RoutingContext(input="Stop words cleanup in the search index"))
    assert result.decision is RouteDecision.SINGLE_TASK
    assert result.matched_rule == "stopwords"


def test_invalid_config_update_keeps_previous_config() -> None:
    router = ContextRouter()
    with pytest.raises(ValueError, match="min_confidence"):
        router.update_config(min_confidence=1.5)
    assert router.get_config().min_confidence == 0.3


def test_generate_title_uses_first_sentence() -> None:
    assert generate_title("Ship the dashboard. Then tell sales.") == "Ship the dashboard"
    long_title = generate_title("x" * 120)
    assert len(long_title) == 80
    assert long_title.endswith("...")


@pytest.mark.asyncio
async def test_tier2_refines_low_confidence() -> None:
    tier2 = _FixedTier2(_ops_result(0.9))
    router = ContextRouter(tier2=tier2)
    result = await router.route_async(RoutingContext(input="Bump the version number"))
    assert tier2.calls == ["Bump the version number"]
    assert result.decision is RouteDecision.SINGLE_TASK
    assert result.suggested_task is not None
    assert result.suggested_task.type == "OPS"


@pytest.mark.asyncio
async def test_tier2_is_skipped_when_confident() -> None:
    tier2 = _FixedTier2(_ops_result(0.99))
    router = ContextRouter(tier2=tier2)
    result = await router.route_async(RoutingContext(input=OAUTH_REQUEST))
    assert tier2.calls == []
    assert result.decision is RouteDecision.COORDINATOR


@pytest.mark.asyncio
async def test_less_confident_tier2_result_is_ignored() -> None:
    router = ContextRouter(tier2=_FixedTier2(_ops_result(0.05)))
    result = await router.route_async(RoutingContext(input="Bump the version number"))
    assert result.decision is RouteDecision.CLARIFY
    assert result.classification.intent is IntentCategory.UNKNOWN


@pytest.mark.asyncio
async def test_tier2_failure_falls_back_to_tier1(caplog) -> None:
    router = ContextRouter(tier2=_FailingTier2())
    with caplog.at_level(logging.WARNING, logger="mission_control.router.router"):
        result = await router.route_async(RoutingContext(input="Bump the version number"))
    assert result.decision is RouteDecision.CLARIFY
    assert "backend unavailable" in caplog.text


@pytest.mark.asyncio
async def test_tier2_timeout_falls_back_to_tier1() -> None:
    router = ContextRouter(
        ContextRouterConfig(tier2_timeout_seconds=0.05),
        tier2=_SlowTier2(),
    )
    result = await router.route_async(RoutingContext(input="Bump the version number"))
    assert result.decision is RouteDecision.CLARIFY


def test_sync_route_never_consults_tier2() -> None:
    tier2 = _FixedTier2(_ops_result(0.9))
    result = ContextRouter(tier2=tier2).route(RoutingContext(input="Bump the version number"))
    assert tier2.calls == []
    assert result.decision is RouteDecision.CLARIFY
