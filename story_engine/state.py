"""Character state update service.

Write path for runtime changes to an adventure's character instance:
ownership check → build timestamped StateUpdates → merge (last write wins
per field) → persist → invalidate the cached character context.

Errors propagate here, unlike context assembly: a lost write must reach
the caller. Two writers racing on the same instance are not serialised;
the later write wins per field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from story_engine.cache import ContextCache, context_cache_key
from story_engine.models import CharacterInstance, StateUpdateMap
from story_engine.storage import NotFoundError, Storage
from story_engine.updates import build_state_updates, merge_state_updates, structure_text_updates

logger = logging.getLogger(__name__)


@dataclass
class StateUpdateResult:
    success: bool
    updates: StateUpdateMap


def _next_write_time(current: StateUpdateMap, fields: list[str]) -> datetime:
    """Current UTC time, nudged forward so it sorts after any entry it replaces."""
    now = datetime.now(timezone.utc)
    for field in fields:
        existing = current.get(field)
        if existing is None:
            continue
        try:
            previous = datetime.fromisoformat(existing.timestamp)
        except ValueError:
            continue
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if previous >= now:
            now = previous + timedelta(microseconds=1)
    return now


class CharacterStateService:
    def __init__(self, storage: Storage, cache: ContextCache) -> None:
        self._storage = storage
        self._cache = cache

    def _load_instance(self, adventure_id: str, user_id: str) -> CharacterInstance:
        if self._storage.get_adventure(adventure_id, user_id) is None:
            raise NotFoundError("Adventure not found or not accessible")
        instance = self._storage.get_character_instance(adventure_id)
        if instance is None:
            raise NotFoundError("Adventure character not found")
        return instance

    def update_character_state(
        self,
        adventure_id: str,
        user_id: str,
        updates: dict[str, Any],
        context: str | None = None,
    ) -> StateUpdateResult:
        """Record structured field updates and drop the stale cached context."""
        instance = self._load_instance(adventure_id, user_id)
        current = instance.state_updates or {}

        new_updates = build_state_updates(
            updates, context, now=_next_write_time(current, list(updates))
        )
        self._storage.write_state_updates(adventure_id, merge_state_updates(current, new_updates))

        self._cache.invalidate(context_cache_key(adventure_id))
        logger.debug("Invalidated character context cache for: %s", adventure_id)
        return StateUpdateResult(True, new_updates)

    def update_character_state_from_text(
        self,
        adventure_id: str,
        user_id: str,
        text_updates: dict[str, str],
        context: str | None = None,
    ) -> StateUpdateResult:
        """Like update_character_state, but parses each field's free text first."""
        return self.update_character_state(
            adventure_id, user_id, structure_text_updates(text_updates), context
        )

    def get_character_state(self, adventure_id: str, user_id: str) -> CharacterInstance:
        return self._load_instance(adventure_id, user_id)
