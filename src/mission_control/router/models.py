"""Router vocabularies and result shapes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RouteDecision(str, Enum):
    COORDINATOR = "COORDINATOR"
    SINGLE_TASK = "SINGLE_TASK"
    CLARIFY = "CLARIFY"
    REJECT = "REJECT"
    DEFER = "DEFER"


class IntentCategory(str, Enum):
    BUILD = "BUILD"
    FIX = "FIX"
    RESEARCH = "RESEARCH"
    CONTENT = "CONTENT"
    OPS = "OPS"
    REVIEW = "REVIEW"
    REFACTOR = "REFACTOR"
    UNKNOWN = "UNKNOWN"


class ComplexityTier(str, Enum):
    """Total order TRIVIAL < SIMPLE < MODERATE < COMPLEX < EPIC."""

    TRIVIAL = "TRIVIAL"
    SIMPLE = "SIMPLE"
    MODERATE = "MODERATE"
    COMPLEX = "COMPLEX"
    EPIC = "EPIC"

    @property
    def rank(self) -> int:
        return _COMPLEXITY_ORDER.index(self)

    def at_least(self, other: ComplexityTier) -> bool:
        return self.rank >= other.rank


_COMPLEXITY_ORDER: tuple[ComplexityTier, ...] = tuple(ComplexityTier)


class RequestSource(str, Enum):
    HUMAN = "HUMAN"
    AGENT = "AGENT"
    SYSTEM = "SYSTEM"
    CHANNEL = "CHANNEL"
    API = "API"


TASK_TYPES: tuple[str, ...] = (
    "ENGINEERING",
    "CONTENT",
    "SOCIAL",
    "EMAIL_MARKETING",
    "CUSTOMER_RESEARCH",
    "SEO_RESEARCH",
    "DOCS",
    "OPS",
)


@dataclass(slots=True, frozen=True)
class RoutingContext:
    """One incoming request plus the capacity facts the router may gate on."""

    input: str
    source: RequestSource = RequestSource.HUMAN
    budget_remaining: float | None = None
    active_agent_count: int | None = None
    max_concurrent_tasks: int | None = None
    pending_task_count: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    intent: IntentCategory
    confidence: float
    complexity: ComplexityTier
    task_type: str
    keywords: tuple[str, ...] = ()
    detected_subtasks: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": round(self.confidence, 4),
            "complexity": self.complexity.value,
            "task_type": self.task_type,
            "keywords": list(self.keywords),
            "detected_subtasks": (
                list(self.detected_subtasks) if self.detected_subtasks is not None else None
            ),
        }


@dataclass(slots=True, frozen=True)
class SuggestedTask:
    title: str
    description: str
    type: str
    priority: int


@dataclass(slots=True, frozen=True)
class SuggestedMission:
    title: str
    description: str
    type: str
    priority: int
    estimated_subtasks: int


@dataclass(slots=True, frozen=True)
class RouteResult:
    """Disposition of one request.

    Exactly one payload field is set, selected by ``decision``: a suggested
    task, a suggested mission, clarify questions, a reject reason or a defer reason.
    """

    decision: RouteDecision
    reasoning: str
    classification: ClassificationResult
    suggested_task: SuggestedTask | None = None
    suggested_mission: SuggestedMission | None = None
    clarify_questions: tuple[str, ...] | None = None
    reject_reason: str | None = None
    defer_reason: str | None = None
    matched_rule: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "decision": self.decision.value,
            "reasoning": self.reasoning,
            "classification": self.classification.to_dict(),
        }
        if self.matched_rule is not None:
            payload["matched_rule"] = self.matched_rule
        if self.suggested_task is not None:
            task = self.suggested_task
            payload["suggested_task"] = {
                "title": task.title,
                "description": task.description,
                "type": task.type,
                "priority": task.priority,
            }
        if self.suggested_mission is not None:
            mission = self.suggested_mission
            payload["suggested_mission"] = {
                "title": mission.title,
                "description": mission.description,
                "type": mission.type,
                "priority": mission.priority,
                "estimated_subtasks": mission.estimated_subtasks,
            }
        if self.clarify_questions is not None:
            payload["clarify_questions"] = list(self.clarify_questions)
        if self.reject_reason is not None:
            payload["reject_reason"] = self.reject_reason
        if self.defer_reason is not None:
            payload["defer_reason"] = self.defer_reason
        return payload


@dataclass(slots=True, frozen=True)
class RoutingRule:
    """Ordered pattern rule that forces a route when any pattern matches."""

    name: str
    patterns: tuple[re.Pattern[str], ...]
    route: RouteDecision
    task_type: str | None = None
    complexity: ComplexityTier | None = None
    priority: int | None = None
    reject_reason: str | None = None
    clarify_questions: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)
