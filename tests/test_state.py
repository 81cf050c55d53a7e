"""Tests for the character state update service."""

from datetime import datetime

import pytest

from story_engine.cache import context_cache_key
from story_engine.context import ContextAssembler
from story_engine.state import CharacterStateService
from story_engine.storage import NotFoundError
from story_engine.updates import DEFAULT_UPDATE_CONTEXT


@pytest.fixture
def service(storage, cache):
    return CharacterStateService(storage, cache)


def test_update_records_state(service, storage, alice_adventure):
    result = service.update_character_state(alice_adventure.id, "u1", {"mood": "happy"})
    assert result.success is True
    assert result.updates["mood"].value == "happy"
    assert result.updates["mood"].context == DEFAULT_UPDATE_CONTEXT
    assert storage.get_state_updates(alice_adventure.id)["mood"].value == "happy"


def test_repeated_field_keeps_one_entry_with_later_timestamp(service, storage, alice_adventure):
    service.update_character_state(alice_adventure.id, "u1", {"mood": "happy"})
    first = storage.get_state_updates(alice_adventure.id)["mood"]

    service.update_character_state(alice_adventure.id, "u1", {"mood": "sad"})
    state = storage.get_state_updates(alice_adventure.id)

    assert list(state) == ["mood"]
    assert state["mood"].value == "sad"
    assert datetime.fromisoformat(state["mood"].timestamp) > datetime.fromisoformat(first.timestamp)


def test_other_fields_survive(service, storage, alice_adventure):
    service.update_character_state(alice_adventure.id, "u1", {"mood": "happy", "location": "inn"})
    service.update_character_state(alice_adventure.id, "u1", {"mood": "sad"}, context="Bad news")
    state = storage.get_state_updates(alice_adventure.id)
    assert state["location"].value == "inn"
    assert state["mood"].context == "Bad news"


def test_update_invalidates_cache(service, storage, cache, alice_adventure):
    ContextAssembler(storage, cache).build_character_context(alice_adventure.id)
    service.update_character_state(alice_adventure.id, "u1", {"mood": "happy"})
    assert cache.get(context_cache_key(alice_adventure.id)) is None


def test_update_unknown_adventure(service):
    with pytest.raises(NotFoundError):
        service.update_character_state("nope", "u1", {"mood": "happy"})


def test_update_other_users_adventure(service, storage, alice_adventure):
    with pytest.raises(NotFoundError):
        service.update_character_state(alice_adventure.id, "u2", {"mood": "happy"})
    assert storage.get_state_updates(alice_adventure.id) == {}


def test_write_failure_propagates_and_keeps_cache(service, storage, cache, alice_adventure, monkeypatch):
    key = context_cache_key(alice_adventure.id)
    cache.set(key, "cached", 300)

    def broken_write(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(storage, "write_state_updates", broken_write)
    with pytest.raises(OSError):
        service.update_character_state(alice_adventure.id, "u1", {"mood": "happy"})
    assert cache.get(key) == "cached"


def test_update_from_text(service, storage, alice_adventure):
    service.update_character_state_from_text(
        alice_adventure.id, "u1", {"hair": "Hair: silver", "location": "the docks"}
    )
    state = storage.get_state_updates(alice_adventure.id)
    assert state["hair"].value == {"hair.color": ["Silver"]}
    assert state["location"].value == "the docks"


def test_get_character_state(service, alice_adventure):
    instance = service.get_character_state(alice_adventure.id, "u1")
    assert instance.name == "Alice"
    with pytest.raises(NotFoundError):
        service.get_character_state(alice_adventure.id, "u2")
