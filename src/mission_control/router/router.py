"""Context router: decide what happens to a free-text request.

Evaluation order, first match wins: custom rules, built-in safety rules, the
capacity and budget gate, then classification (low confidence asks for
clarification, otherwise complexity picks coordinator or single task).
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from mission_control.coordinator.decomposer import get_strategy
from mission_control.router.classifier import classify
from mission_control.router.models import (
    ClassificationResult,
    ComplexityTier,
    IntentCategory,
    RouteDecision,
    RouteResult,
    RoutingContext,
    RoutingRule,
    SuggestedMission,
    SuggestedTask,
)
from mission_control.router.rules import BUILT_IN_RULES, HELP_QUESTIONS, REJECT_SYSTEM_COMMAND
from mission_control.router.tier2 import Tier2Classifier

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 80
PRIORITY_QUESTION = "What priority would you assign? (1=critical, 4=nice-to-have)"

SUBTASK_ESTIMATES: dict[ComplexityTier, int] = {
    ComplexityTier.TRIVIAL: 1,
    ComplexityTier.SIMPLE: 2,
    ComplexityTier.MODERATE: 3,
    ComplexityTier.COMPLEX: 5,
    ComplexityTier.EPIC: 7,
}

_SENTENCE_END = re.compile(r"[.!?\n]")


@dataclass(slots=True, frozen=True)
class ContextRouterConfig:
    """Router tuning; every default is listed here."""

    coordinator_threshold: ComplexityTier = ComplexityTier.COMPLEX
    min_confidence: float = 0.3
    custom_rules: tuple[RoutingRule, ...] = field(default_factory=tuple)
    tier2_timeout_seconds: float = 10.0

    def validate(self) -> None:
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must be between 0 and 1.")
        if self.tier2_timeout_seconds <= 0:
            raise ValueError("tier2_timeout_seconds must be positive.")


class ContextRouter:
    """Routes requests with deterministic rules and an optional Tier-2 refinement."""

    def __init__(
        self,
        config: ContextRouterConfig | None = None,
        tier2: Tier2Classifier | None = None,
    ) -> None:
        self._config = config or ContextRouterConfig()
        self._config.validate()
        self._tier2 = tier2

    def get_config(self) -> ContextRouterConfig:
        return self._config

    def update_config(self, **changes: Any) -> ContextRouterConfig:
        """Replace selected fields; an invalid result leaves the current config in place."""

        if "custom_rules" in changes:
            changes["custom_rules"] = tuple(changes["custom_rules"])
        updated = replace(self._config, **changes)
        updated.validate()
        self._config = updated
        return updated

    def set_tier2(self, tier2: Tier2Classifier | None) -> None:
        self._tier2 = tier2

    @property
    def rules(self) -> Sequence[RoutingRule]:
        return (*self._config.custom_rules, *BUILT_IN_RULES)

    def route(self, context: RoutingContext) -> RouteResult:
        """Synchronous routing with the Tier-1 classifier only."""

        early = self._match_rules(context)
        if early is not None:
            return early
        classification = classify(context.input)
        gated = _capacity_gate(context, classification)
        if gated is not None:
            return gated
        return self._route_classified(context, classification)

    async def route_async(self, context: RoutingContext) -> RouteResult:
        """Like :meth:`route`, but refine low-confidence classifications with Tier-2.

        Tier-2 is bounded by ``tier2_timeout_seconds``; any failure keeps the
        Tier-1 result. A refinement is used only when it is more confident.
        """

        early = self._match_rules(context)
        if early is not None:
            return early
        classification = classify(context.input)
        gated = _capacity_gate(context, classification)
        if gated is not None:
            return gated
        if self._tier2 is not None and classification.confidence < self._config.min_confidence:
            classification = await self._refine(self._tier2, context.input, classification)
        return self._route_classified(context, classification)

    async def _refine(
        self,
        tier2: Tier2Classifier,
        text: str,
        tier1: ClassificationResult,
    ) -> ClassificationResult:
        try:
            refined = await asyncio.wait_for(
                tier2.classify(text, tier1),
                timeout=self._config.tier2_timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Tier-2 classification timed out after %ss; keeping Tier-1 result",
                self._config.tier2_timeout_seconds,
            )
            return tier1
        except Exception as error:  # noqa: BLE001
            logger.warning("Tier-2 classification failed; keeping Tier-1 result: %s", error)
            return tier1
        if refined.confidence <= tier1.confidence:
            logger.debug(
                "Tier-2 confidence %.2f did not beat Tier-1 %.2f",
                refined.confidence,
                tier1.confidence,
            )
            return tier1
        return refined

    def _match_rules(self, context: RoutingContext) -> RouteResult | None:
        text = context.input
        for rule in self.rules:
            if not rule.matches(text):
                continue
            logger.debug("Routing rule %s matched", rule.name)
            classification = classify(text)
            if rule.task_type:
                classification = replace(classification, task_type=rule.task_type)
            if rule.complexity is not None:
                classification = replace(classification, complexity=rule.complexity)
            return self._rule_result(rule, context, classification)
        return None

    def _rule_result(
        self,
        rule: RoutingRule,
        context: RoutingContext,
        classification: ClassificationResult,
    ) -> RouteResult:
        if rule.route is RouteDecision.REJECT:
            return RouteResult(
                decision=RouteDecision.REJECT,
                reasoning=(
                    f'Matched rule "{rule.name}": this appears to be a system command, '
                    "not a task."
                ),
                classification=classification,
                reject_reason=rule.reject_reason or REJECT_SYSTEM_COMMAND,
                matched_rule=rule.name,
            )
        if rule.route is RouteDecision.CLARIFY:
            return RouteResult(
                decision=RouteDecision.CLARIFY,
                reasoning=f'Matched rule "{rule.name}": need more information to create a task.',
                classification=classification,
                clarify_questions=rule.clarify_questions or HELP_QUESTIONS,
                matched_rule=rule.name,
            )
        if rule.route is RouteDecision.DEFER:
            return RouteResult(
                decision=RouteDecision.DEFER,
                reasoning=f'Matched rule "{rule.name}": request is deferred by configuration.',
                classification=classification,
                defer_reason=f'Deferred by routing rule "{rule.name}".',
                matched_rule=rule.name,
            )
        result = _build_result(rule.route, classification, context, priority=rule.priority)
        return replace(
            result,
            reasoning=f'Matched rule "{rule.name}". {result.reasoning}',
            matched_rule=rule.name,
        )

    def _route_classified(
        self,
        context: RoutingContext,
        classification: ClassificationResult,
    ) -> RouteResult:
        if classification.confidence < self._config.min_confidence:
            return RouteResult(
                decision=RouteDecision.CLARIFY,
                reasoning=(
                    f"Low confidence classification ({classification.confidence * 100:.0f}%). "
                    f'Intent detected as "{classification.intent.value}" but need more context.'
                ),
                classification=classification,
                clarify_questions=generate_clarify_questions(classification),
            )
        if classification.complexity.at_least(self._config.coordinator_threshold):
            decision = RouteDecision.COORDINATOR
        else:
            decision = RouteDecision.SINGLE_TASK
        return _build_result(decision, classification, context)


def _capacity_gate(
    context: RoutingContext,
    classification: ClassificationResult,
) -> RouteResult | None:
    pending = context.pending_task_count
    limit = context.max_concurrent_tasks
    if pending is not None and limit is not None and pending >= limit:
        return RouteResult(
            decision=RouteDecision.DEFER,
            reasoning=(
                f"System at capacity: {pending}/{limit} concurrent tasks. "
                "Request will be queued."
            ),
            classification=classification,
            defer_reason=(
                f"Task queue full ({pending} pending). Will be processed when capacity opens."
            ),
        )
    if context.budget_remaining is not None and context.budget_remaining <= 0:
        return RouteResult(
            decision=RouteDecision.DEFER,
            reasoning="Budget exhausted. Request deferred until budget is replenished.",
            classification=classification,
            defer_reason="Daily budget has been reached. Task will be queued for tomorrow.",
        )
    return None


def _build_result(
    decision: RouteDecision,
    classification: ClassificationResult,
    context: RoutingContext,
    *,
    priority: int | None = None,
) -> RouteResult:
    chosen_priority = priority if priority is not None else infer_priority(classification)
    title = generate_title(context.input)
    summary = (
        f"Classified as {classification.complexity.value} {classification.intent.value} task "
        f"(confidence: {classification.confidence * 100:.0f}%)."
    )
    if decision is RouteDecision.COORDINATOR:
        return RouteResult(
            decision=decision,
            reasoning=f"{summary} Routing to Coordinator for decomposition.",
            classification=classification,
            suggested_mission=SuggestedMission(
                title=title,
                description=context.input,
                type=classification.task_type,
                priority=chosen_priority,
                estimated_subtasks=estimate_subtasks(classification),
            ),
        )
    return RouteResult(
        decision=RouteDecision.SINGLE_TASK,
        reasoning=f"{summary} Creating as single task.",
        classification=classification,
        suggested_task=SuggestedTask(
            title=title,
            description=context.input,
            type=classification.task_type,
            priority=chosen_priority,
        ),
    )


def infer_priority(classification: ClassificationResult) -> int:
    """FIX is urgent; otherwise bigger work ranks higher and trivia lowest."""

    if classification.intent is IntentCategory.FIX:
        return 2
    if classification.complexity is ComplexityTier.EPIC:
        return 1
    if classification.complexity is ComplexityTier.COMPLEX:
        return 2
    if classification.complexity is ComplexityTier.TRIVIAL:
        return 4
    return 3


def generate_title(text: str) -> str:
    """First sentence of the request, at most 80 characters."""

    stripped = text.strip()
    title = _SENTENCE_END.split(stripped, maxsplit=1)[0].strip() or stripped
    if len(title) <= MAX_TITLE_LENGTH:
        return title
    return title[: MAX_TITLE_LENGTH - 3] + "..."


def estimate_subtasks(classification: ClassificationResult) -> int:
    """Detected enumeration size, else the larger of the strategy size and the tier estimate."""

    detected = classification.detected_subtasks or ()
    if len(detected) >= 2:
        return len(detected)
    phases = len(get_strategy(classification.task_type).phases)
    return max(phases, SUBTASK_ESTIMATES[classification.complexity])


def generate_clarify_questions(classification: ClassificationResult) -> tuple[str, ...]:
    questions: list[str] = []
    if classification.intent is IntentCategory.UNKNOWN:
        questions.append("Could you describe what you'd like to accomplish?")
        questions.append("Is this a new feature, a bug fix, or something else?")
    if classification.confidence < 0.2:
        questions.append("Could you provide more detail about the expected outcome?")
    questions.append(PRIORITY_QUESTION)
    return tuple(questions)
