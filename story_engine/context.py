"""Character-context assembly for the chat system prompt.

Output shape (lines only present when their source is non-empty):

    You are Alice, age 25. Background: Raised by wolves.
    Personality: Personality: Brave, Curious
    Physical attributes: Hair (color): Brown, Long
    Distinctive scents: Feet: Smelly

    Current state changes: mood: Personality (emotions): Anxious, location: the docks

Cache first, keyed by adventure id. A context built while a state update
invalidated the key is returned but not cached. A missing character or any
failure in storage or cache yields "" so a chat turn degrades instead of
crashing.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from story_engine.cache import ContextCache, context_cache_key
from story_engine.models import CharacterInstance, StateUpdateMap
from story_engine.parser import attribute_to_text
from story_engine.storage import Storage
from story_engine.updates import get_field_type

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_TTL = 300

# (instance field, field type, label)
ATTRIBUTE_SECTIONS = (
    ("personality", "personality", "Personality"),
    ("appearance", "appearance", "Physical attributes"),
    ("scents_aromas", "scents", "Distinctive scents"),
)


def character_data_to_text(data: Any, field_type: str) -> str:
    """Render stored character data (attribute map or legacy text) as prose."""
    if not data:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        try:
            return attribute_to_text(data)
        except Exception:
            logger.warning("Could not render %s data, falling back to JSON", field_type, exc_info=True)
            return json.dumps(data, default=str)
    return str(data)


def format_state_value(field: str, value: Any) -> str:
    """Format one state update value for the prompt, by the field's inferred type."""
    field_type = get_field_type(field)
    if field_type != "other":
        return character_data_to_text(value, field_type)
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def compose_character_context(instance: CharacterInstance, state_updates: StateUpdateMap) -> str:
    """Build the context string for an instance. Pure; no cache or storage access."""
    if instance.age is not None:
        context = f"You are {instance.name}, age {instance.age}."
    else:
        context = f"You are {instance.name}."
    if instance.background:
        context += f" Background: {instance.background}"

    for field, field_type, label in ATTRIBUTE_SECTIONS:
        data = getattr(instance, field)
        if not data:
            continue
        text = character_data_to_text(data, field_type)
        if text.strip():
            context += f"\n{label}: {text}"

    current_state: list[str] = []
    for field, update in state_updates.items():
        if not update.value:
            continue
        formatted = format_state_value(field, update.value)
        if formatted.strip():
            current_state.append(f"{field}: {formatted}")
    if current_state:
        context += f"\n\nCurrent state changes: {', '.join(current_state)}"

    return context.strip()


class ContextAssembler:
    """Cache-first character context builder.

    Args:
        storage: Persistence collaborator for character instances.
        cache:   Shared context cache; entries are invalidated by state writes.
        ttl:     Seconds an assembled context stays cached.
    """

    def __init__(self, storage: Storage, cache: ContextCache, ttl: int = DEFAULT_CONTEXT_TTL) -> None:
        self._storage = storage
        self._cache = cache
        self._ttl = ttl

    def build_character_context(self, adventure_id: str) -> str:
        try:
            key = context_cache_key(adventure_id)
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for character context: %s", adventure_id)
                return cached
            logger.debug("Cache miss for character context: %s", adventure_id)

            generation = self._cache.generation(key)
            instance = self._storage.get_character_instance(adventure_id)
            if instance is None:
                return ""

            context = compose_character_context(instance, instance.state_updates or {})
            self._cache.set(key, context, self._ttl, generation)
            return context
        except Exception:
            logger.exception("Error building character context for %s", adventure_id)
            return ""

    def invalidate(self, adventure_id: str) -> None:
        self._cache.invalidate(context_cache_key(adventure_id))
