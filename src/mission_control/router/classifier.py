"""Tier-1 request classification from ordered keyword pattern tables.

Deterministic and synchronous: intent, complexity, task type, keywords and
enumerated subtasks are all derived from regular expressions over the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mission_control.router.models import ClassificationResult, ComplexityTier, IntentCategory

CLASSIFIER_VERSION = 1


@dataclass(slots=True, frozen=True)
class IntentPattern:
    intent: IntentCategory
    patterns: tuple[re.Pattern[str], ...]
    default_task_type: str
    weight: float


@dataclass(slots=True, frozen=True)
class ComplexitySignal:
    tier: ComplexityTier
    patterns: tuple[re.Pattern[str], ...]
    weight: float


def _compile(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


INTENT_PATTERNS: tuple[IntentPattern, ...] = (
    IntentPattern(
        intent=IntentCategory.BUILD,
        patterns=_compile(
            r"\b(build|create|implement|add|develop|make|ship|launch|scaffold|bootstrap)\b",
            r"\b(new feature|new page|new component|new endpoint|new api|new service)\b",
            r"\b(set up|setup|integrate|wire up|hook up)\b",
        ),
        default_task_type="ENGINEERING",
        weight=1.0,
    ),
    IntentPattern(
        intent=IntentCategory.FIX,
        patterns=_compile(
            r"\b(fix|bug|broken|error|crash|issue|problem|fail|wrong|doesn'?t work)\b",
            r"\b(debug|troubleshoot|investigate error|patch|hotfix)\b",
            r"\b(regression|defect|exception|stack trace)\b",
        ),
        default_task_type="ENGINEERING",
        weight=1.0,
    ),
    IntentPattern(
        intent=IntentCategory.RESEARCH,
        patterns=_compile(
            r"\b(research|investigate|analyze|explore|evaluate|compare|assess|audit)\b",
            r"\b(find out|look into|study|benchmark|pros and cons)\b",
            r"\b(competitive analysis|market research|user research|feasibility)\b",
        ),
        default_task_type="CUSTOMER_RESEARCH",
        weight=0.9,
    ),
    IntentPattern(
        intent=IntentCategory.CONTENT,
        patterns=_compile(
            r"\b(write|draft|blog|article|post|copy|content|newsletter|email campaign)\b",
            r"\b(social media|tweet|linkedin|publish|editorial)\b",
            r"\b(documentation|docs|readme|guide|tutorial)\b",
        ),
        default_task_type="CONTENT",
        weight=0.9,
    ),
    IntentPattern(
        intent=IntentCategory.OPS,
        patterns=_compile(
            r"\b(deploy|infrastructure|ci/cd|pipeline|monitoring|alert|scale|migrate)\b",
            r"\b(devops|docker|kubernetes|terraform|ansible|server|hosting)\b",
            r"\b(backup|restore|maintenance|upgrade|rollback|environment)\b",
        ),
        default_task_type="OPS",
        weight=0.9,
    ),
    IntentPattern(
        intent=IntentCategory.REVIEW,
        patterns=_compile(
            r"\b(review|code review|pr review|qa|quality|test|check|verify|validate)\b",
            r"\b(pull request|merge request|approval|sign off)\b",
        ),
        default_task_type="ENGINEERING",
        weight=0.8,
    ),
    IntentPattern(
        intent=IntentCategory.REFACTOR,
        patterns=_compile(
            r"\b(refactor|restructure|reorganize|clean up|simplify|optimize|improve)\b",
            r"\b(tech debt|technical debt|code quality|performance|speed up)\b",
            r"\b(modernize|migrate|upgrade|consolidate)\b",
        ),
        default_task_type="ENGINEERING",
        weight=0.9,
    ),
)

COMPLEXITY_SIGNALS: tuple[ComplexitySignal, ...] = (
    ComplexitySignal(
        tier=ComplexityTier.EPIC,
        patterns=_compile(
            r"\b(entire|whole|complete|all|every|full|end.to.end|e2e)\b",
            r"\b(system|platform|architecture|redesign|rewrite|overhaul)\b",
            r"\bmulti.?(step|phase|stage|day|week)\b",
            # three or more "and"s read as a compound request
            r"\band\b.*\band\b.*\band\b",
        ),
        weight=1.0,
    ),
    ComplexitySignal(
        tier=ComplexityTier.COMPLEX,
        patterns=_compile(
            r"\b(integration|cross.?cutting|multiple.*files|several.*components)\b",
            r"\b(database.*schema|migration|api.*change|breaking.*change)\b",
            r"\b(authentication|authorization|security|payment|billing)\b",
        ),
        weight=0.8,
    ),
    ComplexitySignal(
        tier=ComplexityTier.MODERATE,
        patterns=_compile(
            r"\b(component|module|function|endpoint|page|view|modal)\b",
            r"\b(update|modify|change|adjust|tweak|configure)\b",
        ),
        weight=0.6,
    ),
    ComplexitySignal(
        tier=ComplexityTier.SIMPLE,
        patterns=_compile(
            r"\b(rename|typo|label|text|color|font|spacing|margin|padding)\b",
            r"\b(toggle|flag|constant|config|env|variable|setting)\b",
        ),
        weight=0.7,
    ),
    ComplexitySignal(
        tier=ComplexityTier.TRIVIAL,
        patterns=_compile(
            r"\b(bump|version|comment|log|console|print|whitespace)\b",
            r"\bone.?line|single.?line|quick\b",
        ),
        weight=0.8,
    ),
)

# Later entries override earlier ones when several types match.
TASK_TYPE_PATTERNS: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    (
        "ENGINEERING",
        _compile(
            r"\b(code|function|class|component|api|endpoint|database|schema|type|interface)\b",
            r"\b(react|typescript|javascript|python|css|html|sql)\b",
        ),
    ),
    ("CONTENT", _compile(r"\b(blog|article|post|copy|writing|editorial|newsletter)\b")),
    ("SOCIAL", _compile(r"\b(social|tweet|linkedin|instagram|facebook|tiktok|thread)\b")),
    (
        "EMAIL_MARKETING",
        _compile(r"\b(email|campaign|drip|sequence|subscriber|mailchimp|sendgrid)\b"),
    ),
    (
        "CUSTOMER_RESEARCH",
        _compile(r"\b(research|survey|interview|persona|customer|user|feedback|analytics)\b"),
    ),
    ("SEO_RESEARCH", _compile(r"\b(seo|keyword|ranking|serp|backlink|search.*engine|organic)\b")),
    (
        "DOCS",
        _compile(r"\b(documentation|readme|guide|tutorial|api.*doc|jsdoc|changelog)\b"),
    ),
    ("OPS", _compile(r"\b(deploy|devops|ci|cd|pipeline|docker|infra|monitor|terraform)\b")),
)

STOPWORDS: frozenset[str] = frozenset(
    """
    the a an is are was were be been being have has had do does did will would could
    should may might shall can need dare ought used to of in for on with at by from
    up about into through during before after above below between out off over under
    again further then once here there when where why how all both each few more most
    other some such no not only own same so than too very just don now and but or if
    while as it its this that these those i me my we our you your he she they them
    what which who whom please make get let
    """.split(),
)

MAX_KEYWORDS = 15
CONTRADICTION_PENALTY = 0.1

_NON_WORD = re.compile(r"[^a-zA-Z0-9\s_-]")
_NUMBERED_ITEM = re.compile(r"(?:^|\n)\s*\d+[.)]\s*(.+)")
_BULLET_ITEM = re.compile(r"(?:^|\n)\s*[-*•]\s*(.+)")
_THEN = re.compile(r"\bthen\b", re.IGNORECASE)


def classify(text: str) -> ClassificationResult:
    """Classify a free-text request. Never raises for string input."""

    normalized = text.strip()

    intent_scores: dict[IntentCategory, float] = {}
    for intent_pattern in INTENT_PATTERNS:
        score = _signal_score(normalized, intent_pattern.patterns, intent_pattern.weight)
        if score > 0:
            intent_scores[intent_pattern.intent] = max(
                intent_scores.get(intent_pattern.intent, 0.0),
                score,
            )
    best_intent = IntentCategory.UNKNOWN
    best_intent_score = 0.0
    for intent, score in intent_scores.items():
        if score > best_intent_score:
            best_intent, best_intent_score = intent, score
    contradictory = sum(1 for score in intent_scores.values() if score == best_intent_score) > 1

    best_complexity = ComplexityTier.MODERATE
    best_complexity_score = 0.0
    for signal in COMPLEXITY_SIGNALS:
        score = _signal_score(normalized, signal.patterns, signal.weight)
        if score > best_complexity_score:
            best_complexity, best_complexity_score = signal.tier, score

    word_count = len(normalized.split())
    if word_count > 150:
        best_complexity = ComplexityTier.EPIC
    elif word_count > 80 and best_complexity is ComplexityTier.MODERATE:
        best_complexity = ComplexityTier.COMPLEX
    elif word_count < 8 and best_complexity is ComplexityTier.MODERATE:
        best_complexity = ComplexityTier.SIMPLE

    keywords = extract_keywords(normalized)
    subtasks = detect_subtasks(normalized)
    confidence = compute_confidence(
        intent_score=best_intent_score,
        complexity_score=best_complexity_score,
        word_count=word_count,
        keyword_count=len(keywords),
        contradictory=contradictory,
    )
    return ClassificationResult(
        intent=best_intent,
        confidence=confidence,
        complexity=best_complexity,
        task_type=infer_task_type(normalized, best_intent),
        keywords=tuple(keywords),
        detected_subtasks=tuple(subtasks) if subtasks else None,
    )


def _signal_score(text: str, patterns: tuple[re.Pattern[str], ...], weight: float) -> float:
    matches = sum(1 for pattern in patterns if pattern.search(text))
    return matches / len(patterns) * weight if matches else 0.0


def infer_task_type(text: str, intent: IntentCategory) -> str:
    task_type = "ENGINEERING"
    for intent_pattern in INTENT_PATTERNS:
        if intent_pattern.intent is intent:
            task_type = intent_pattern.default_task_type
            break
    for candidate, patterns in TASK_TYPE_PATTERNS:
        if any(pattern.search(text) for pattern in patterns):
            task_type = candidate
    return task_type


def extract_keywords(text: str) -> list[str]:
    """Lowercased non-stopword tokens longer than two characters, first occurrence order."""

    words = _NON_WORD.sub(" ", text).split()
    kept = [word.lower() for word in words if len(word) > 2 and word.lower() not in STOPWORDS]
    return list(dict.fromkeys(kept))[:MAX_KEYWORDS]


def detect_subtasks(text: str) -> list[str]:
    """Numbered items, else bullet items, else a "then" chain; at least two fragments or nothing."""

    for pattern in (_NUMBERED_ITEM, _BULLET_ITEM):
        items = [match.group(1).strip() for match in pattern.finditer(text)]
        items = [item for item in items if item]
        if len(items) >= 2:
            return items

    parts = [part.strip().strip(",;").strip() for part in _THEN.split(text)]
    parts = [part for part in parts if part]
    if len(parts) >= 2:
        return parts
    return []


def compute_confidence(
    *,
    intent_score: float,
    complexity_score: float,
    word_count: int,
    keyword_count: int,
    contradictory: bool = False,
) -> float:
    """Blend signal strengths into 0..1; a tie between top intents costs a penalty."""

    confidence = intent_score * 0.6 + complexity_score * 0.2
    if 5 <= word_count <= 200:
        confidence += 0.1
    if keyword_count >= 3:
        confidence += 0.1
    if contradictory:
        confidence -= CONTRADICTION_PENALTY
    return max(0.0, min(confidence, 1.0))
