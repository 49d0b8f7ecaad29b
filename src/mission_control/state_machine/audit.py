"""Append-only transition records produced only for validated changes."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from mission_control.common import utc_now
from mission_control.state_machine.states import TaskStatus, TransitionActor
from mission_control.state_machine.validator import (
    TransitionContext,
    ValidationResult,
    validate_transition,
)


@dataclass(slots=True, frozen=True)
class TransitionRecord:
    """Audit entry for a committed status change."""

    task_id: str
    from_status: TaskStatus
    to_status: TaskStatus
    actor: TransitionActor
    idempotency_key: str
    created_at: datetime
    artifacts_provided: tuple[str, ...] = ()
    actor_id: str | None = None
    reason: str | None = None
    warning: str | None = None

    def to_event_details(self) -> dict[str, object]:
        """Serialize the record for the caller's event store."""

        return {
            "task_id": self.task_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "actor": self.actor.value,
            "actor_id": self.actor_id,
            "reason": self.reason,
            "artifacts_provided": list(self.artifacts_provided),
            "idempotency_key": self.idempotency_key,
            "created_at": self.created_at.isoformat(),
            "warning": self.warning,
        }


@dataclass(slots=True, frozen=True)
class TransitionOutcome:
    """Validation verdict plus the record to persist when the change is legal."""

    validation: ValidationResult
    record: TransitionRecord | None = None


def record_transition(  # noqa: PLR0913
    *,
    task_id: str,
    from_status: TaskStatus | str,
    to_status: TaskStatus | str,
    actor: TransitionActor | str,
    artifacts: Mapping[str, object] | None = None,
    actor_id: str | None = None,
    reason: str | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Validate a change and build its audit record; illegal changes get no record."""

    supplied = dict(artifacts or {})
    validation = validate_transition(
        TransitionContext(
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            artifacts=supplied,
        ),
    )
    if not validation.valid:
        return TransitionOutcome(validation=validation)

    origin = TaskStatus(from_status)
    target = TaskStatus(to_status)
    who = TransitionActor(actor)
    provided = tuple(sorted(name for name, value in supplied.items() if value))
    key = idempotency_key or derive_idempotency_key(
        task_id=task_id,
        from_status=origin,
        to_status=target,
        actor=who,
        actor_id=actor_id,
    )
    return TransitionOutcome(
        validation=validation,
        record=TransitionRecord(
            task_id=task_id,
            from_status=origin,
            to_status=target,
            actor=who,
            idempotency_key=key,
            created_at=now or utc_now(),
            artifacts_provided=provided,
            actor_id=actor_id,
            reason=reason,
            warning=validation.warning,
        ),
    )


def derive_idempotency_key(
    *,
    task_id: str,
    from_status: TaskStatus,
    to_status: TaskStatus,
    actor: TransitionActor,
    actor_id: str | None,
) -> str:
    """Deterministic key so retried submissions of the same change collapse."""

    raw = "|".join((task_id, from_status.value, to_status.value, actor.value, actor_id or ""))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]
