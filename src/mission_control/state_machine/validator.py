"""Transition validation against the canonical rule table."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from mission_control.state_machine.states import (
    TaskStatus,
    TransitionActor,
    is_terminal_status,
)
from mission_control.state_machine.transitions import TRANSITION_RULES, find_transition_rule

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of one transition check."""

    valid: bool
    error: str | None = None
    warning: str | None = None


@dataclass(slots=True, frozen=True)
class TransitionContext:
    """A requested status change and the evidence supplied with it."""

    from_status: TaskStatus | str
    to_status: TaskStatus | str
    actor: TransitionActor | str
    artifacts: Mapping[str, object] = field(default_factory=dict)


def validate_transition(context: TransitionContext) -> ValidationResult:
    """Validate a transition: path, then actor, then artifacts, then terminal warning."""

    from_status = _coerce_status(context.from_status)
    to_status = _coerce_status(context.to_status)
    from_label = _label(context.from_status)
    to_label = _label(context.to_status)

    rule = (
        find_transition_rule(from_status, to_status)
        if from_status is not None and to_status is not None
        else None
    )
    if rule is None:
        return ValidationResult(
            valid=False,
            error=f"Invalid transition: {from_label} -> {to_label}. "
            "This transition is not allowed.",
        )

    actor = _coerce_actor(context.actor)
    if actor is None or actor not in rule.allowed_actors:
        allowed = ", ".join(sorted(item.value for item in rule.allowed_actors))
        return ValidationResult(
            valid=False,
            error=f"Actor '{_label(context.actor)}' is not allowed to perform transition "
            f"{from_label} -> {to_label}. Allowed actors: {allowed}",
        )

    missing = [
        name for name in rule.required_artifacts if not _is_present(context.artifacts.get(name))
    ]
    if missing:
        return ValidationResult(
            valid=False,
            error=f"Missing required artifacts for {from_label} -> {to_label}: "
            f"{', '.join(missing)}",
        )

    if is_terminal_status(rule.from_status):
        logger.debug("Reopening transition %s -> %s by %s", from_label, to_label, actor.value)
        return ValidationResult(
            valid=True,
            warning=f"Transitioning from terminal state {from_label}. This should be rare.",
        )
    return ValidationResult(valid=True)


def validate_transitions(contexts: Iterable[TransitionContext]) -> list[ValidationResult]:
    """Validate a batch of transitions independently."""

    return [validate_transition(context) for context in contexts]


def can_actor_transition(from_status: TaskStatus | str, actor: TransitionActor | str) -> bool:
    """True when ``actor`` may leave ``from_status`` through at least one rule."""

    return bool(get_valid_next_statuses(from_status, actor))


def get_valid_next_statuses(
    from_status: TaskStatus | str,
    actor: TransitionActor | str,
) -> list[TaskStatus]:
    """Statuses reachable from ``from_status`` by ``actor``, in table order."""

    origin = _coerce_status(from_status)
    who = _coerce_actor(actor)
    if origin is None or who is None:
        return []
    return [
        rule.to_status
        for rule in TRANSITION_RULES
        if rule.from_status == origin and who in rule.allowed_actors
    ]


def explain_transition(
    from_status: TaskStatus | str,
    to_status: TaskStatus | str,
    actor: TransitionActor | str,
) -> str:
    """Human-readable verdict ignoring artifacts: the rule description or the failed check."""

    rule = None
    origin = _coerce_status(from_status)
    target = _coerce_status(to_status)
    if origin is not None and target is not None:
        rule = find_transition_rule(origin, target)
    artifacts = {name: "provided" for name in rule.required_artifacts} if rule else {}
    result = validate_transition(
        TransitionContext(
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            artifacts=artifacts,
        ),
    )
    if result.valid and rule is not None:
        return f"Valid transition: {rule.description}"
    return result.error or "Unknown error"


def _is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


def _coerce_status(value: TaskStatus | str) -> TaskStatus | None:
    try:
        return TaskStatus(value)
    except ValueError:
        return None


def _coerce_actor(value: TransitionActor | str) -> TransitionActor | None:
    try:
        return TransitionActor(value)
    except ValueError:
        return None


def _label(value: object) -> str:
    if isinstance(value, (TaskStatus, TransitionActor)):
        return value.value
    return str(value)
