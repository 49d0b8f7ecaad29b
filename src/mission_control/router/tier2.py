"""Tier-2 classification: a model-backed refinement the router consults on low confidence."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shlex
from typing import Any, Protocol

from mission_control.router.models import (
    TASK_TYPES,
    ClassificationResult,
    ComplexityTier,
    IntentCategory,
)

logger = logging.getLogger(__name__)

MAX_TIER2_KEYWORDS = 10
FALLBACK_CONFIDENCE_BOOST = 0.3

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


class Tier2Error(RuntimeError):
    """Tier-2 call failed or returned something unusable."""


class Tier2Classifier(Protocol):
    """Anything that can refine a Tier-1 classification."""

    async def classify(self, text: str, hint: ClassificationResult) -> ClassificationResult: ...


class LlmClient(Protocol):
    """Minimal completion interface; the response is expected to contain JSON."""

    async def complete(self, prompt: str) -> str: ...


def build_classification_prompt(text: str, hint: ClassificationResult) -> str:
    intents = json.dumps([intent.value for intent in IntentCategory])
    tiers = json.dumps([tier.value for tier in ComplexityTier])
    task_types = json.dumps(list(TASK_TYPES))
    return (
        "You are a task classification system for an agent orchestration platform.\n"
        "\n"
        "Classify the following user request into structured metadata.\n"
        "\n"
        'User request:\n"""\n'
        f"{text}\n"
        '"""\n'
        "\n"
        "Rule-based hint (may be wrong):\n"
        f"- intent: {hint.intent.value}\n"
        f"- complexity: {hint.complexity.value}\n"
        f"- confidence: {hint.confidence * 100:.0f}%\n"
        "\n"
        "Return ONLY a JSON object with this exact shape (no markdown, no explanation):\n"
        "{\n"
        f'  "intent": one of {intents},\n'
        f'  "complexity": one of {tiers},\n'
        f'  "taskType": one of {task_types},\n'
        '  "confidence": number between 0 and 1,\n'
        f'  "keywords": array of up to {MAX_TIER2_KEYWORDS} relevant keywords (strings),\n'
        '  "detectedSubtasks": array of subtask strings if the request has several steps, else []\n'
        "}\n"
        "\n"
        "Guidelines:\n"
        "- BUILD: creating new features, pages, components, APIs, services\n"
        "- FIX: fixing bugs, errors, broken functionality\n"
        "- RESEARCH: investigating, analyzing, evaluating options\n"
        "- CONTENT: writing, editing, publishing text content\n"
        "- OPS: deployment, infrastructure, CI/CD, monitoring\n"
        "- REVIEW: code review, QA, testing, validation\n"
        "- REFACTOR: improving existing code without changing behaviour\n"
        "- TRIVIAL: under 15 min, single file or line change\n"
        "- SIMPLE: 15 to 60 min, small self-contained change\n"
        "- MODERATE: 1 to 4 hours, touches multiple files\n"
        "- COMPLEX: 4+ hours, cross-cutting concerns or integrations\n"
        "- EPIC: multi-day, requires decomposition into sub-tasks\n"
    )


def _try_load_dict(raw: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Find a JSON object in model output: whole text, fenced block, or outermost braces."""

    stripped = text.strip()
    if not stripped:
        return None
    direct = _try_load_dict(stripped)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(stripped)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(stripped[start : end + 1])


def _coerce_enum(raw: Any, enum_type: type[Any], fallback: Any) -> Any:
    if isinstance(raw, str):
        try:
            return enum_type(raw.strip().upper())
        except ValueError:
            return fallback
    return fallback


def parse_classification_response(raw: str, fallback: ClassificationResult) -> ClassificationResult:
    """Validate each field of a model response, keeping the Tier-1 value where it is unusable.

    Raises :class:`Tier2Error` when no JSON object can be found at all.
    """

    payload = extract_json_object(raw)
    if payload is None:
        raise Tier2Error(f"Tier-2 response is not a JSON object: {raw.strip()[:200]!r}")

    intent = _coerce_enum(payload.get("intent"), IntentCategory, fallback.intent)
    complexity = _coerce_enum(payload.get("complexity"), ComplexityTier, fallback.complexity)

    task_type = payload.get("taskType")
    if not isinstance(task_type, str) or task_type.strip().upper() not in TASK_TYPES:
        task_type = fallback.task_type
    else:
        task_type = task_type.strip().upper()

    confidence = payload.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, int | float)
        or not 0 <= confidence <= 1
    ):
        confidence = min(fallback.confidence + FALLBACK_CONFIDENCE_BOOST, 1.0)

    keywords = payload.get("keywords")
    if isinstance(keywords, list):
        keyword_values = tuple(item for item in keywords if isinstance(item, str))[
            :MAX_TIER2_KEYWORDS
        ]
    else:
        keyword_values = fallback.keywords

    subtasks = payload.get("detectedSubtasks")
    subtask_values: tuple[str, ...] | None
    if isinstance(subtasks, list) and subtasks:
        subtask_values = tuple(item for item in subtasks if isinstance(item, str)) or None
    else:
        subtask_values = fallback.detected_subtasks

    return ClassificationResult(
        intent=intent,
        confidence=float(confidence),
        complexity=complexity,
        task_type=task_type,
        keywords=keyword_values,
        detected_subtasks=subtask_values,
    )


class LlmClassifier:
    """Tier-2 classifier on top of any :class:`LlmClient`."""

    def __init__(self, client: LlmClient) -> None:
        self._client = client

    async def classify(self, text: str, hint: ClassificationResult) -> ClassificationResult:
        raw = await self._client.complete(build_classification_prompt(text, hint))
        return parse_classification_response(raw, hint)


class CliAgentClient:
    """Run a CLI agent command template and return its stdout.

    The template must contain ``{prompt}``; ``{model}`` is optional. Values are
    shell-quoted before the template is split into argv.
    """

    def __init__(
        self,
        *,
        command_template: str,
        model: str = "",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.command_template = command_template
        self.model = model
        self.timeout_seconds = timeout_seconds

    def build_args(self, prompt: str) -> list[str]:
        stripped = self.command_template.strip()
        if not stripped:
            raise Tier2Error("Tier-2 command template is empty.")
        if "{prompt}" not in stripped:
            raise Tier2Error("Tier-2 command template must include {prompt}.")
        try:
            rendered = stripped.format(model=shlex.quote(self.model), prompt=shlex.quote(prompt))
        except (KeyError, IndexError) as error:
            raise Tier2Error(f"Unsupported command template placeholder: {error}") from error
        argv = shlex.split(rendered)
        if not argv:
            raise Tier2Error("Tier-2 command template rendered empty command.")
        return argv

    async def complete(self, prompt: str) -> str:
        argv = self.build_args(prompt)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
        except FileNotFoundError as error:
            raise Tier2Error(f"Tier-2 command not found: {argv[0]}") from error
        except OSError as error:
            raise Tier2Error(f"Tier-2 command failed to start: {error}") from error

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as error:
            process.kill()
            await process.wait()
            raise Tier2Error(
                f"Tier-2 command timed out after {self.timeout_seconds} seconds",
            ) from error

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[:200]
            raise Tier2Error(f"Tier-2 command exited with code {process.returncode}: {detail}")
        return stdout.decode("utf-8", errors="replace")
