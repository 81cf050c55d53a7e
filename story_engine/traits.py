"""Trait enhancement: inject conversation-relevant character details into a prompt.

The recent conversation is matched against ATTRIBUTE_SCHEMA keywords. Each
matching bucket (e.g. appearance/hair) pulls the instance's values for that
category, which are phrased as second-person sentences ("Your hair is
Brown and Long.") and spliced into the system prompt:

  1. after a character/context heading, as "**Relevant Character Details:**"
  2. else before a trailing Remember/Important/Note/Guidelines/Instructions block
  3. else appended, as "**Important Character Context:**"

Enhancement never raises; problems are collected in the result's errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from story_engine.models import CharacterInstance, ChatMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttributeBucket:
    column: str  # CharacterInstance field
    category: str  # category part of the namespaced key; "" for plain text columns
    keywords: tuple[str, ...]


ATTRIBUTE_SCHEMA: dict[str, AttributeBucket] = {
    "appearance.hair": AttributeBucket("appearance", "hair", ("hair", "locks", "haircut", "braid")),
    "appearance.eyes": AttributeBucket("appearance", "eyes", ("eyes", "eye", "gaze")),
    "appearance.face": AttributeBucket("appearance", "face", ("face", "smile", "lips")),
    "appearance.body": AttributeBucket("appearance", "body", ("body", "build", "figure", "height")),
    "appearance.skin": AttributeBucket("appearance", "skin", ("skin", "complexion", "tan")),
    "appearance.feet": AttributeBucket("appearance", "feet", ("feet", "foot", "toes", "soles")),
    "appearance.hands": AttributeBucket("appearance", "hands", ("hands", "hand", "fingers")),
    "scents_aromas.feet": AttributeBucket("scents_aromas", "feet", ("smell", "stink", "feet")),
    "scents_aromas.hair": AttributeBucket("scents_aromas", "hair", ("smell", "scent", "hair")),
    "scents_aromas.body": AttributeBucket("scents_aromas", "body", ("smell", "scent", "aroma", "odor")),
    "personality.traits": AttributeBucket("personality", "personality", ("personality", "behave", "attitude")),
    "background": AttributeBucket("background", "", ("background", "past", "history", "childhood")),
}


@dataclass
class AttributeQuery:
    key: str
    bucket: AttributeBucket
    confidence: float
    matched_keywords: list[str]


@dataclass
class ContextAnalysis:
    queries: list[AttributeQuery] = field(default_factory=list)
    confidence: Literal["low", "medium", "high"] = "low"
    fallback_to_full_data: bool = False
    log: list[str] = field(default_factory=list)


@dataclass
class TraitEnhancement:
    success: bool
    enhanced_prompt: str
    original_prompt: str
    traits_injected: list[str] = field(default_factory=list)
    analysis: ContextAnalysis = field(default_factory=ContextAnalysis)
    errors: list[str] = field(default_factory=list)


# ── Conversation analysis ───────────────────────────────────


def _match_bucket(text: str, bucket: AttributeBucket) -> tuple[list[str], int]:
    found: list[str] = []
    total = 0
    for keyword in bucket.keywords:
        hits = len(re.findall(rf"\b{re.escape(keyword)}\b", text))
        if hits:
            found.append(keyword)
            total += hits
    return found, total


def analyze_conversation(
    messages: list[ChatMessage],
    lookback: int = 5,
    threshold: float = 0.3,
) -> ContextAnalysis:
    """Score every schema bucket against the last `lookback` messages.

    confidence = min(hit keywords / bucket keywords, 1) + min(hits * 0.1, 0.3),
    capped at 0.95. Buckets below `threshold` are discarded.
    """
    result = ContextAnalysis()
    recent = messages[-lookback:] if lookback > 0 else []
    text = " ".join(m.content for m in recent).lower()
    result.log.append(f"Analyzing {len(recent)} recent messages")

    for key, bucket in ATTRIBUTE_SCHEMA.items():
        found, total = _match_bucket(text, bucket)
        if not found:
            continue
        base = min(len(found) / len(bucket.keywords), 1.0)
        confidence = min(base + min(total * 0.1, 0.3), 0.95)
        if confidence >= threshold:
            result.queries.append(AttributeQuery(key, bucket, confidence, found))

    result.queries.sort(key=lambda q: q.confidence, reverse=True)
    if not result.queries:
        result.fallback_to_full_data = True
        result.log.append("No keyword matches above threshold")
    elif any(q.confidence > 0.8 for q in result.queries):
        result.confidence = "high"
    else:
        result.confidence = "medium"
    return result


def collect_trait_data(instance: CharacterInstance, analysis: ContextAnalysis) -> dict[str, Any]:
    """Pull the instance's values for each queried bucket, keyed "column.namespaced_key"."""
    data: dict[str, Any] = {}
    for query in analysis.queries:
        bucket = query.bucket
        column = getattr(instance, bucket.column, None)
        if not column:
            continue
        if isinstance(column, str):
            data[bucket.column] = column
            continue
        for namespaced_key, values in column.items():
            if namespaced_key.partition(".")[0] == bucket.category and values:
                data[f"{bucket.column}.{namespaced_key}"] = values
    return data


# ── Phrasing ────────────────────────────────────────────────


def format_value(value: Any) -> str:
    """Readable list/scalar: ["a", "b", "c"] → "a, b, and c"."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float, bool)):
        return str(value)
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None]
        items = [i for i in items if i]
        if not items:
            return ""
        if len(items) == 1:
            return items[0]
        if len(items) == 2:
            return f"{items[0]} and {items[1]}"
        return f"{', '.join(items[:-1])}, and {items[-1]}"
    if isinstance(value, dict):
        parts = []
        for k, v in value.items():
            text = format_value(v)
            if text:
                parts.append(f"{k}: {text}")
        return ", ".join(parts)
    return str(value)


def format_appearance_trait(path: str, value: Any) -> str:
    text = format_value(value)
    if not text:
        return ""
    category, _, sub_type = path.partition(".")
    if category == "hair":
        if sub_type == "color":
            return f"Your hair is {text}."
        if sub_type == "style":
            return f"Your hair is styled {text}."
        return f"Your hair: {text}."
    if category == "eyes" and sub_type == "color":
        return f"Your eyes are {text}."
    if category == "feet" and sub_type == "size":
        return f"Your feet are {text}."
    if category == "body" and sub_type == "size":
        return f"You have a {text} build."
    return f"Your {category.replace('_', ' ')}: {text}."


def format_scent_trait(path: str, value: Any) -> str:
    text = format_value(value)
    if not text:
        return ""
    category = path.partition(".")[0]
    if category == "feet":
        return f"Your feet smell {text}."
    if category == "hair":
        return f"Your hair smells like {text}."
    if category == "body":
        return f"Your natural scent is {text}."
    return f"You smell like {text}."


def format_personality_trait(path: str, value: Any) -> str:
    text = format_value(value)
    if not text:
        return ""
    sub_type = path.partition(".")[2]
    if sub_type == "traits":
        return f"You are {text}."
    if sub_type == "emotions":
        return f"You are currently feeling {text}."
    if sub_type == "quirks":
        return f"You typically {text}."
    return f"Your personality: {text}."


def format_trait(key: str, value: Any) -> str:
    """Phrase one collected trait ("appearance.hair.color", [...]) as a sentence."""
    column, _, path = key.partition(".")
    if column == "appearance":
        return format_appearance_trait(path, value)
    if column == "scents_aromas":
        return format_scent_trait(path, value)
    if column == "personality":
        return format_personality_trait(path, value)
    if column == "background":
        text = format_value(value)
        return f"Your background: {text}." if text else ""
    text = format_value(value)
    return f"{key}: {text}." if text else ""


# ── Injection ───────────────────────────────────────────────

_INSERTION_POINTS = (
    re.compile(r"(\n\n### Character Information:?\s*)", re.IGNORECASE),
    re.compile(r"(\n\n## Character:?\s*)", re.IGNORECASE),
    re.compile(r"(\n\nCharacter:?\s*)", re.IGNORECASE),
    re.compile(r"(\n\n### Context:?\s*)", re.IGNORECASE),
    re.compile(r"(\n\n## Context:?\s*)", re.IGNORECASE),
)

_CLOSING_BLOCKS = (
    re.compile(r"(\n\n(?:Remember|Important|Note|Guidelines|Instructions):[\s\S]*$)", re.IGNORECASE),
    re.compile(r"(\n\n---\s*$)"),
    re.compile(r"(\n\n\*\*(?:Remember|Important|Note)[\s\S]*$)", re.IGNORECASE),
)


def inject_traits(prompt: str, trait_text: str) -> str:
    for pattern in _INSERTION_POINTS:
        match = pattern.search(prompt)
        if match:
            insert = f"{match.group(1)}\n**Relevant Character Details:** {trait_text}\n\n"
            return prompt[: match.start()] + insert + prompt[match.end():]

    section = f"\n\n**Important Character Context:** {trait_text}"
    for pattern in _CLOSING_BLOCKS:
        match = pattern.search(prompt)
        if match:
            return prompt[: match.start()] + section + prompt[match.start():]
    return prompt + section


def enhance_system_prompt(
    prompt: str,
    instance: CharacterInstance,
    messages: list[ChatMessage],
    lookback: int = 5,
    threshold: float = 0.3,
) -> TraitEnhancement:
    result = TraitEnhancement(success=False, enhanced_prompt=prompt, original_prompt=prompt)
    try:
        result.analysis = analyze_conversation(messages, lookback, threshold)
        data = collect_trait_data(instance, result.analysis)
        if not data:
            result.errors.append("No relevant trait data found for context")
            result.success = True
            return result

        sentences = []
        for key, value in data.items():
            sentence = format_trait(key, value)
            if sentence and sentence not in sentences:
                sentences.append(sentence)
                result.traits_injected.append(key)
        if sentences:
            result.enhanced_prompt = inject_traits(prompt, " ".join(sentences))
        result.success = True
    except Exception as e:
        logger.warning("Trait enhancement failed: %s", e, exc_info=True)
        result.errors.append(str(e))
    return result
