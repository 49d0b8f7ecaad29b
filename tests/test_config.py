from __future__ import annotations

from pathlib import Path

import allure
import pytest

from mission_control.config import Settings, Tier2Settings
from mission_control.router import ComplexityTier, LlmClassifier, RouteDecision

pytestmark = [
    allure.epic("Shell"),
    allure.feature("Configuration"),
]


def test_defaults_without_environment() -> None:
    settings = Settings.from_env()
    settings.validate()
    assert settings.router.coordinator_threshold is ComplexityTier.COMPLEX
    assert settings.router.min_confidence == 0.3
    assert settings.coordinator_config().poll_interval_ms == 30_000
    assert settings.coordinator_config().stuck_threshold_ms == 1_800_000
    assert settings.tier2_classifier() is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_COORDINATOR_THRESHOLD", "moderate")
    monkeypatch.setenv("MISSION_CONTROL_MIN_CONFIDENCE", "0.5")
    monkeypatch.setenv("MISSION_CONTROL_MAX_SUBTASKS", "3")
    monkeypatch.setenv("MISSION_CONTROL_POLL_INTERVAL_MS", "1000")
    settings = Settings.from_env()
    router_config = settings.router_config()
    assert router_config.coordinator_threshold is ComplexityTier.MODERATE
    assert router_config.min_confidence == 0.5
    assert settings.coordinator_config().max_subtasks_per_decomposition == 3
    assert settings.coordinator_config().poll_interval_ms == 1000


def test_invalid_integer_names_variable(monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_STUCK_THRESHOLD_MS", "soon")
    with pytest.raises(ValueError, match="MISSION_CONTROL_STUCK_THRESHOLD_MS"):
        Settings.from_env()


def test_invalid_threshold_lists_tiers(monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_COORDINATOR_THRESHOLD", "huge")
    with pytest.raises(ValueError, match="TRIVIAL, SIMPLE, MODERATE, COMPLEX, EPIC"):
        Settings.from_env()


def test_invalid_boolean_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_TIER2_ENABLED", "maybe")
    with pytest.raises(ValueError, match="MISSION_CONTROL_TIER2_ENABLED"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("MISSION_CONTROL_MIN_CONFIDENCE", "1.5"),
        ("MISSION_CONTROL_POLL_INTERVAL_MS", "0"),
        ("MISSION_CONTROL_MAX_CONCURRENT_TASKS", "0"),
        ("MISSION_CONTROL_TIER2_TIMEOUT_SECONDS", "-1"),
        ("MISSION_CONTROL_ROUTING_RULES_PATH", "/nonexistent/rules.json"),
    ],
)
def test_validate_names_offending_variable(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Settings.from_env().validate()


def test_enabled_tier2_requires_prompt_placeholder() -> None:
    settings = Settings(tier2=Tier2Settings(enabled=True, command_template="agent --json"))
    with pytest.raises(ValueError, match="MISSION_CONTROL_TIER2_COMMAND_TEMPLATE"):
        settings.validate()


def test_enabled_tier2_builds_cli_classifier(monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_TIER2_ENABLED", "yes")
    monkeypatch.setenv("MISSION_CONTROL_TIER2_COMMAND_TEMPLATE", "agent -m {model} {prompt}")
    monkeypatch.setenv("MISSION_CONTROL_TIER2_MODEL", "small")
    settings = Settings.from_env()
    settings.validate()
    assert isinstance(settings.tier2_classifier(), LlmClassifier)


def test_routing_rules_file_is_loaded(monkeypatch, tmp_path: Path) -> None:
    rules = tmp_path / "rules.json"
    rules.write_text('[{"name": "ops", "patterns": ["deploy"], "route": "DEFER"}]', "utf-8")
    monkeypatch.setenv("MISSION_CONTROL_ROUTING_RULES_PATH", str(rules))
    settings = Settings.from_env()
    settings.validate()
    (rule,) = settings.router_config().custom_rules
    assert rule.route is RouteDecision.DEFER
