"""Context router: Tier-1 classification, routing rules and optional Tier-2 refinement."""

from mission_control.router.classifier import classify, detect_subtasks, extract_keywords
from mission_control.router.models import (
    ClassificationResult,
    ComplexityTier,
    IntentCategory,
    RequestSource,
    RouteDecision,
    RouteResult,
    RoutingContext,
    RoutingRule,
    SuggestedMission,
    SuggestedTask,
)
from mission_control.router.router import ContextRouter, ContextRouterConfig
from mission_control.router.rules import BUILT_IN_RULES, load_routing_rules, parse_routing_rules
from mission_control.router.tier2 import (
    CliAgentClient,
    LlmClassifier,
    LlmClient,
    Tier2Classifier,
    Tier2Error,
    parse_classification_response,
)

__all__ = [
    "BUILT_IN_RULES",
    "ClassificationResult",
    "CliAgentClient",
    "ComplexityTier",
    "ContextRouter",
    "ContextRouterConfig",
    "IntentCategory",
    "LlmClassifier",
    "LlmClient",
    "RequestSource",
    "RouteDecision",
    "RouteResult",
    "RoutingContext",
    "RoutingRule",
    "SuggestedMission",
    "SuggestedTask",
    "Tier2Classifier",
    "Tier2Error",
    "classify",
    "detect_subtasks",
    "extract_keywords",
    "load_routing_rules",
    "parse_classification_response",
]
