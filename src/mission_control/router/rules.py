"""Built-in safety rules and the JSON format for deployment-specific routing rules."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from mission_control.router.models import ComplexityTier, RouteDecision, RoutingRule

REJECT_SYSTEM_COMMAND = (
    "This looks like a system command. Use the emergency controls panel "
    "or Telegram bot for operational commands."
)
HELP_QUESTIONS: tuple[str, ...] = (
    "What specific outcome do you want?",
    "Which project is this for?",
    "What priority would you assign (1=critical, 4=nice-to-have)?",
)

BUILT_IN_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(
        name="emergency-stop",
        patterns=(
            re.compile(
                r"\b(emergency|stop|halt|abort|kill|shutdown|pause all|drain all)\b",
                re.IGNORECASE,
            ),
        ),
        route=RouteDecision.REJECT,
        complexity=ComplexityTier.TRIVIAL,
        reject_reason=REJECT_SYSTEM_COMMAND,
    ),
    RoutingRule(
        name="help-request",
        patterns=(
            re.compile(r"^(help|what can you do|commands|how do i|status|show me)\b", re.IGNORECASE),
        ),
        route=RouteDecision.CLARIFY,
        complexity=ComplexityTier.TRIVIAL,
        clarify_questions=HELP_QUESTIONS,
    ),
)

_ALLOWED_KEYS = frozenset({"name", "patterns", "route", "taskType", "complexity", "priority"})


def parse_routing_rules(payload: Any) -> tuple[RoutingRule, ...]:
    """Validate a JSON array of rule objects and compile their patterns case-insensitively."""

    if not isinstance(payload, list):
        raise TypeError("routing rules must be a JSON array")
    rules: list[RoutingRule] = []
    for index, item in enumerate(payload):
        rules.append(_parse_rule(item, index=index))
    return tuple(rules)


def _parse_rule(item: Any, *, index: int) -> RoutingRule:  # noqa: C901
    where = f"routing_rules[{index}]"
    if not isinstance(item, dict):
        raise TypeError(f"{where} must be an object")
    unknown = sorted(set(item) - _ALLOWED_KEYS)
    if unknown:
        raise ValueError(f"{where} has unsupported keys: {', '.join(unknown)}")

    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{where}.name must be a non-empty string")

    raw_patterns = item.get("patterns")
    if not isinstance(raw_patterns, list) or not raw_patterns:
        raise ValueError(f"{where}.patterns must be a non-empty array")
    patterns: list[re.Pattern[str]] = []
    for raw in raw_patterns:
        if not isinstance(raw, str) or not raw:
            raise ValueError(f"{where}.patterns entries must be non-empty strings")
        try:
            patterns.append(re.compile(raw, re.IGNORECASE))
        except re.error as error:
            raise ValueError(f"{where}.patterns has invalid regex {raw!r}: {error}") from error

    try:
        route = RouteDecision(str(item.get("route", "")).upper())
    except ValueError as error:
        allowed = ", ".join(decision.value for decision in RouteDecision)
        raise ValueError(f"{where}.route must be one of: {allowed}") from error

    task_type = item.get("taskType")
    if task_type is not None and (not isinstance(task_type, str) or not task_type.strip()):
        raise ValueError(f"{where}.taskType must be a non-empty string when provided")

    complexity: ComplexityTier | None = None
    if item.get("complexity") is not None:
        try:
            complexity = ComplexityTier(str(item["complexity"]).upper())
        except ValueError as error:
            allowed = ", ".join(tier.value for tier in ComplexityTier)
            raise ValueError(f"{where}.complexity must be one of: {allowed}") from error

    priority = item.get("priority")
    if priority is not None and (
        isinstance(priority, bool) or not isinstance(priority, int) or not 1 <= priority <= 4
    ):
        raise ValueError(f"{where}.priority must be an integer between 1 and 4")

    return RoutingRule(
        name=name.strip(),
        patterns=tuple(patterns),
        route=route,
        task_type=task_type.strip().upper() if task_type else None,
        complexity=complexity,
        priority=priority,
    )


def load_routing_rules(path: Path) -> tuple[RoutingRule, ...]:
    """Read custom rules from a JSON file."""

    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid routing rules JSON at {path}: {error}") from error
    return parse_routing_rules(payload)
