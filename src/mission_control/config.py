"""Runtime configuration for the router, the coordinator and Tier-2 classification."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from mission_control.coordinator.loop import CoordinatorConfig
from mission_control.router.models import ComplexityTier
from mission_control.router.router import ContextRouterConfig
from mission_control.router.rules import load_routing_rules
from mission_control.router.tier2 import CliAgentClient, LlmClassifier


@dataclass(slots=True)
class RouterSettings:
    """Context router thresholds."""

    coordinator_threshold: ComplexityTier = ComplexityTier.COMPLEX
    min_confidence: float = 0.3
    routing_rules_path: Path | None = None


@dataclass(slots=True)
class CoordinatorSettings:
    """Coordination tick settings."""

    poll_interval_ms: int = 30_000
    max_subtasks_per_decomposition: int = 7
    stuck_threshold_ms: int = 1_800_000
    max_concurrent_tasks: int = 10


@dataclass(slots=True)
class Tier2Settings:
    """Optional CLI-agent classifier consulted on low-confidence requests."""

    enabled: bool = False
    command_template: str = ""
    model: str = ""
    timeout_seconds: float = 10.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by component."""

    router: RouterSettings = field(default_factory=RouterSettings)
    coordinator: CoordinatorSettings = field(default_factory=CoordinatorSettings)
    tier2: Tier2Settings = field(default_factory=Tier2Settings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``MISSION_CONTROL_*`` environment variables."""

        rules_path = os.getenv("MISSION_CONTROL_ROUTING_RULES_PATH", "").strip()
        return cls(
            router=RouterSettings(
                coordinator_threshold=_env_complexity(
                    "MISSION_CONTROL_COORDINATOR_THRESHOLD",
                    ComplexityTier.COMPLEX,
                ),
                min_confidence=_env_float("MISSION_CONTROL_MIN_CONFIDENCE", 0.3),
                routing_rules_path=Path(rules_path) if rules_path else None,
            ),
            coordinator=CoordinatorSettings(
                poll_interval_ms=_env_int("MISSION_CONTROL_POLL_INTERVAL_MS", 30_000),
                max_subtasks_per_decomposition=_env_int("MISSION_CONTROL_MAX_SUBTASKS", 7),
                stuck_threshold_ms=_env_int("MISSION_CONTROL_STUCK_THRESHOLD_MS", 1_800_000),
                max_concurrent_tasks=_env_int("MISSION_CONTROL_MAX_CONCURRENT_TASKS", 10),
            ),
            tier2=Tier2Settings(
                enabled=_env_bool("MISSION_CONTROL_TIER2_ENABLED", default=False),
                command_template=os.getenv("MISSION_CONTROL_TIER2_COMMAND_TEMPLATE", ""),
                model=os.getenv("MISSION_CONTROL_TIER2_MODEL", ""),
                timeout_seconds=_env_float("MISSION_CONTROL_TIER2_TIMEOUT_SECONDS", 10.0),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error naming the offending variable."""

        if not 0.0 <= self.router.min_confidence <= 1.0:
            raise ValueError("MISSION_CONTROL_MIN_CONFIDENCE must be between 0 and 1.")
        if self.router.routing_rules_path is not None and not self.router.routing_rules_path.is_file():
            raise ValueError(
                "MISSION_CONTROL_ROUTING_RULES_PATH does not point to a file: "
                f"{self.router.routing_rules_path}",
            )
        if self.coordinator.poll_interval_ms <= 0:
            raise ValueError("MISSION_CONTROL_POLL_INTERVAL_MS must be > 0.")
        if self.coordinator.max_subtasks_per_decomposition < 1:
            raise ValueError("MISSION_CONTROL_MAX_SUBTASKS must be >= 1.")
        if self.coordinator.stuck_threshold_ms <= 0:
            raise ValueError("MISSION_CONTROL_STUCK_THRESHOLD_MS must be > 0.")
        if self.coordinator.max_concurrent_tasks < 1:
            raise ValueError("MISSION_CONTROL_MAX_CONCURRENT_TASKS must be >= 1.")
        if self.tier2.timeout_seconds <= 0:
            raise ValueError("MISSION_CONTROL_TIER2_TIMEOUT_SECONDS must be > 0.")
        if self.tier2.enabled and "{prompt}" not in self.tier2.command_template:
            raise ValueError(
                "MISSION_CONTROL_TIER2_COMMAND_TEMPLATE must include {prompt} "
                "when MISSION_CONTROL_TIER2_ENABLED is on.",
            )

    def router_config(self) -> ContextRouterConfig:
        rules = ()
        if self.router.routing_rules_path is not None:
            rules = load_routing_rules(self.router.routing_rules_path)
        return ContextRouterConfig(
            coordinator_threshold=self.router.coordinator_threshold,
            min_confidence=self.router.min_confidence,
            custom_rules=rules,
            tier2_timeout_seconds=self.tier2.timeout_seconds,
        )

    def coordinator_config(self) -> CoordinatorConfig:
        return CoordinatorConfig(
            poll_interval_ms=self.coordinator.poll_interval_ms,
            max_subtasks_per_decomposition=self.coordinator.max_subtasks_per_decomposition,
            stuck_threshold_ms=self.coordinator.stuck_threshold_ms,
            max_concurrent_tasks=self.coordinator.max_concurrent_tasks,
        )

    def tier2_classifier(self) -> LlmClassifier | None:
        if not self.tier2.enabled:
            return None
        return LlmClassifier(
            CliAgentClient(
                command_template=self.tier2.command_template,
                model=self.tier2.model,
                # the router's own timeout is the outer bound
                timeout_seconds=self.tier2.timeout_seconds,
            ),
        )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid number value for {name}: {value!r}") from error


def _env_complexity(name: str, default: ComplexityTier) -> ComplexityTier:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return ComplexityTier(value.strip().upper())
    except ValueError as error:
        allowed = ", ".join(tier.value for tier in ComplexityTier)
        raise ValueError(f"Invalid value for {name}: {value!r}. Expected one of: {allowed}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
