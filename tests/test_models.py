"""Tests for story_engine.models."""

import pytest
from pydantic import ValidationError

from story_engine.models import Adventure, CharacterInstance, CharacterTemplate, ChatMessage, StateUpdate


class TestStateUpdate:
    def test_required_fields(self) -> None:
        u = StateUpdate(field="mood", value="tense", timestamp="2024-05-01T12:00:00+00:00")
        assert u.field == "mood"
        assert u.value == "tense"
        assert u.context is None

    def test_value_accepts_attribute_map(self) -> None:
        u = StateUpdate(field="hair", value={"hair.color": ["Silver"]}, timestamp="t")
        assert u.value == {"hair.color": ["Silver"]}

    def test_serialise_roundtrip(self) -> None:
        u = StateUpdate(field="items", value=["rope", 2], timestamp="t", context="Found")
        assert StateUpdate.model_validate_json(u.model_dump_json()) == u


class TestCharacterTemplate:
    def test_defaults(self) -> None:
        t = CharacterTemplate(id="t1", user_id="u1", name="Alice")
        assert t.age is None
        assert t.background == ""
        assert t.appearance == {}
        assert t.personality == {}
        assert t.scents_aromas == {}
        assert t.tags == []

    def test_attribute_maps_must_hold_string_lists(self) -> None:
        with pytest.raises(ValidationError):
            CharacterTemplate(id="t1", user_id="u1", name="Alice", appearance={"hair.color": "Brown"})

    def test_defaults_are_not_shared(self) -> None:
        a = CharacterTemplate(id="a", user_id="u1", name="A")
        b = CharacterTemplate(id="b", user_id="u1", name="B")
        a.appearance["hair.color"] = ["Brown"]
        assert b.appearance == {}


class TestCharacterInstance:
    def test_state_updates_validated(self) -> None:
        i = CharacterInstance.model_validate({
            "id": "c1",
            "adventure_id": "a1",
            "user_id": "u1",
            "name": "Alice",
            "state_updates": {"mood": {"field": "mood", "value": "sad", "timestamp": "t"}},
        })
        assert isinstance(i.state_updates["mood"], StateUpdate)
        assert i.template_id is None

    def test_serialise_roundtrip(self) -> None:
        i = CharacterInstance(
            id="c1", adventure_id="a1", user_id="u1", name="Alice", age=25,
            personality={"personality.traits": ["Brave", "Curious"]},
            state_updates={"mood": StateUpdate(field="mood", value="sad", timestamp="t")},
        )
        assert CharacterInstance.model_validate_json(i.model_dump_json()) == i


class TestAdventure:
    def test_system_prompt_defaults_empty(self) -> None:
        a = Adventure(id="a1", user_id="u1", title="Quest", character_id="c1")
        assert a.system_prompt == ""


class TestChatMessage:
    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(role="narrator", content="x")

    def test_all_valid_roles_accepted(self) -> None:
        for role in ["system", "user", "assistant"]:
            assert ChatMessage(role=role, content="x").role == role
