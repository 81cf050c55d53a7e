"""Unified attribute parser: free text ⇄ namespaced attribute maps.

"hair: brown, long; feet: smelly, stinky" (appearance)
    → {"hair.color": ["Brown", "Long"], "feet.appearance": ["Smelly", "Stinky"]}

Strategies, tried in order until one yields pairs:
  1. explicit "key: values" markers (also "key — values", "key - values")
  2. parenthetical hints, "brown, long (hair)"
  3. sentence-level keyword inference against the category keyword map
  4. fallback: the whole text as one bag of values under a fixed key

Free text never raises; the worst case is the fallback bucket or {}.
attribute_to_text() is the lossy inverse used for display and prompts.
"""

import json
import logging
import re
from typing import Any

from story_engine.models import AttributeMap, AttributeType
from story_engine.tags import format_tag_name

from .classifier import (
    DEFAULT_SUBTYPES,
    category_keywords,
    create_namespaced_key,
    fallback_key,
)
from .tokenizer import find_key_value_pairs, find_parenthetical_hints
from .values import parse_values

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT = re.compile(r"[.!?;]")
_NON_LETTER = re.compile(r"[^a-z\s]")

# Linking words that never describe anything on their own
STOP_WORDS = frozenset({
    "the", "and", "but", "with", "has", "have", "had", "was", "were", "is",
    "are", "very", "quite", "really", "rather", "somewhat", "appears",
    "seems", "looks",
})


def parse_attribute_text(text: str, attribute_type: AttributeType) -> AttributeMap:
    """Parse free text into {"category.subtype": [values]} for one attribute type."""
    if not text or not text.strip():
        return {}

    pairs = find_key_value_pairs(text)
    if pairs:
        return _build_from_pairs(pairs, attribute_type)

    hints = find_parenthetical_hints(text)
    if hints:
        return _build_from_pairs([(cat, vals) for vals, cat in hints], attribute_type)

    inferred = infer_category_structure(text, attribute_type)
    if inferred:
        return inferred

    values = parse_values(text)
    if not values:
        return {}
    key = fallback_key(attribute_type)
    logger.debug("No structure found in %s text, using %s", attribute_type, key)
    return {key: values}


def _build_from_pairs(pairs: list[tuple[str, str]], attribute_type: AttributeType) -> AttributeMap:
    result: AttributeMap = {}
    for category, value_text in pairs:
        values = parse_values(value_text)
        if values:
            # A repeated key keeps the later values
            result[create_namespaced_key(category, values, attribute_type)] = values
    return result


def extract_descriptors(sentence: str) -> list[str]:
    """Descriptive words of a sentence: letters only, 3+ chars, stop words removed."""
    words = _NON_LETTER.sub(" ", sentence.lower()).split()
    return [format_tag_name(w) for w in words if len(w) > 2 and w not in STOP_WORDS]


def infer_category_structure(text: str, attribute_type: AttributeType) -> AttributeMap:
    """Keyword inference per sentence; one sentence may feed several categories."""
    keyword_map = category_keywords(attribute_type)
    if not keyword_map:
        return {}

    result: AttributeMap = {}
    for sentence in _SENTENCE_SPLIT.split(text):
        if not sentence.strip():
            continue
        lower = sentence.lower()
        for category, keywords in keyword_map.items():
            if not any(keyword in lower for keyword in keywords):
                continue
            descriptors = extract_descriptors(sentence)
            if not descriptors:
                continue
            key = create_namespaced_key(category, descriptors, attribute_type)
            bucket = result.setdefault(key, [])
            for descriptor in descriptors:
                if descriptor not in bucket:
                    bucket.append(descriptor)
    return result


def parse_appearance_text(text: str) -> AttributeMap:
    return parse_attribute_text(text, "appearance")


def parse_personality_text(text: str) -> AttributeMap:
    return parse_attribute_text(text, "personality")


def parse_scents_text(text: str) -> AttributeMap:
    return parse_attribute_text(text, "scents_aromas")


def parse_location_text(text: str) -> AttributeMap:
    return parse_attribute_text(text, "location_features")


def parse_setting_text(text: str) -> AttributeMap:
    return parse_attribute_text(text, "setting_elements")


# ── Rendering ───────────────────────────────────────────────


def _values_to_text(values: Any) -> str:
    if isinstance(values, (list, tuple)):
        return ", ".join(str(v) for v in values)
    if isinstance(values, str):
        return values
    if isinstance(values, (dict, bool)) or values is None:
        return json.dumps(values)
    return str(values)


def attribute_to_text(data: dict[str, Any]) -> str:
    """Render an attribute map as "Hair (color): Brown, Long; Feet: Smelly".

    Default sub-types (appearance, traits, scents) are left implicit.
    Unexpected value shapes are coerced, never raised.
    """
    parts: list[str] = []
    for namespaced_key, values in data.items():
        category, _, sub_type = str(namespaced_key).partition(".")
        suffix = "" if not sub_type or sub_type in DEFAULT_SUBTYPES else f" ({sub_type})"
        parts.append(f"{format_tag_name(category)}{suffix}: {_values_to_text(values)}")
    return "; ".join(parts)


appearance_to_text = attribute_to_text
personality_to_text = attribute_to_text
scents_to_text = attribute_to_text


# ── Merging ─────────────────────────────────────────────────


def merge_attributes(existing: AttributeMap, additional: AttributeMap) -> AttributeMap:
    """Key-wise union: existing order first, then unseen values from additional."""
    result: AttributeMap = {key: list(values) for key, values in existing.items()}
    for key, values in additional.items():
        if key not in result:
            result[key] = list(values)
            continue
        merged = list(dict.fromkeys(result[key]))
        for value in values:
            if value not in merged:
                merged.append(value)
        result[key] = merged
    return result
