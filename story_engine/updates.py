"""State update construction and merging.

Two merge rules live side by side on purpose:
  merge_attributes()     — tag accumulation, values unioned per key
  merge_state_updates()  — current values, last write wins per field

A StateUpdateMap is {field: StateUpdate}; every write for a field replaces
its entry. Natural-language updates ("hair: now silver") are first routed
to an attribute type by field name and parsed into attribute maps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from story_engine.models import AttributeMap, AttributeType, FieldType, StateUpdate, StateUpdateMap
from story_engine.parser import attribute_to_text, parse_attribute_text

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_CONTEXT = "Updated during adventure"

# Checked in this order; the first group with a substring hit wins
FIELD_TYPE_INDICATORS: tuple[tuple[FieldType, tuple[str, ...]], ...] = (
    ("appearance", (
        "hair", "eye", "skin", "height", "build", "clothes", "appearance",
        "looks", "face",
    )),
    ("personality", ("personality", "trait", "behavior", "mood", "emotion", "feel")),
    ("scents", ("smell", "scent", "aroma", "fragrance", "perfume")),
)

# Field type → parser attribute type
FIELD_ATTRIBUTE_TYPES: dict[str, AttributeType] = {
    "appearance": "appearance",
    "personality": "personality",
    "scents": "scents_aromas",
}


@dataclass
class ParsedUpdate:
    field_type: FieldType
    parsed_data: AttributeMap
    natural_text: str


def get_field_type(text: str) -> FieldType:
    """Classify a field name (or free text) as appearance, personality, scents or other."""
    lower = text.lower()
    for field_type, indicators in FIELD_TYPE_INDICATORS:
        if any(indicator in lower for indicator in indicators):
            return field_type
    return "other"


def parse_character_update(
    text: str,
    field_type: Literal["appearance", "personality", "scents", "auto"],
) -> ParsedUpdate | None:
    """Parse a natural-language update into an attribute map.

    "auto" detects the type from the text itself and falls back to
    appearance. Returns None for blank text or when nothing was parsed.
    """
    if not text or not text.strip():
        return None

    if field_type == "auto":
        detected = get_field_type(text)
        resolved: FieldType = "appearance" if detected == "other" else detected
    else:
        resolved = field_type

    attribute_type = FIELD_ATTRIBUTE_TYPES.get(resolved)
    if attribute_type is None:
        return None

    parsed = parse_attribute_text(text, attribute_type)
    if not parsed:
        return None
    return ParsedUpdate(resolved, parsed, attribute_to_text(parsed))


def structure_text_updates(text_updates: dict[str, str]) -> dict[str, Any]:
    """Turn {field: free text} into {field: attribute map | raw text}.

    Fields that are not character attributes, and text the parser cannot
    structure, are kept as raw strings.
    """
    structured: dict[str, Any] = {}
    for field, text in text_updates.items():
        field_type = get_field_type(field)
        if field_type == "other":
            structured[field] = text
            continue
        parsed = parse_character_update(text, field_type)
        if parsed is None:
            logger.debug("Keeping raw text for field %r", field)
            structured[field] = text
        else:
            structured[field] = parsed.parsed_data
    return structured


def utc_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def build_state_updates(
    updates: dict[str, Any],
    context: str | None = None,
    now: datetime | None = None,
) -> StateUpdateMap:
    """Wrap raw field values as StateUpdates sharing one timestamp."""
    timestamp = utc_timestamp(now)
    return {
        field: StateUpdate(
            field=field,
            value=value,
            timestamp=timestamp,
            context=context or DEFAULT_UPDATE_CONTEXT,
        )
        for field, value in updates.items()
    }


def merge_state_updates(current: StateUpdateMap, new: StateUpdateMap) -> StateUpdateMap:
    """Shallow per-field overwrite; the newer entry replaces the older one whole."""
    merged = dict(current)
    merged.update(new)
    return merged
