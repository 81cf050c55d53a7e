"""Core domain models.

Parser, storage and context assembly all operate on these types.
Pydantic is used for validation and serialisation at every data boundary;
attribute maps stay plain dicts ({"hair.color": ["Brown"]}) so they
round-trip through JSON unchanged.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

AttributeType = Literal[
    "appearance",
    "personality",
    "scents_aromas",
    "location_features",
    "setting_elements",
]

AttributeMap = dict[str, list[str]]

FieldType = Literal["appearance", "personality", "scents", "other"]


class StateUpdate(BaseModel):
    """One timestamped runtime change to a character instance field."""

    field: str
    value: Any
    timestamp: str  # ISO 8601, UTC
    context: str | None = None


StateUpdateMap = dict[str, StateUpdate]


class CharacterTemplate(BaseModel):
    """A reusable character authored outside any adventure."""

    id: str
    user_id: str
    name: str
    age: int | None = None
    background: str = ""
    appearance: AttributeMap = Field(default_factory=dict)
    personality: AttributeMap = Field(default_factory=dict)
    scents_aromas: AttributeMap = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)


class CharacterInstance(BaseModel):
    """Adventure-scoped copy of a template; diverges through state updates."""

    id: str
    adventure_id: str
    user_id: str
    template_id: str | None = None
    name: str
    age: int | None = None
    background: str = ""
    appearance: AttributeMap = Field(default_factory=dict)
    personality: AttributeMap = Field(default_factory=dict)
    scents_aromas: AttributeMap = Field(default_factory=dict)
    state_updates: StateUpdateMap = Field(default_factory=dict)
    updated_at: str | None = None


class Adventure(BaseModel):
    """Adventure metadata stored on disk."""

    id: str
    user_id: str
    title: str
    character_id: str
    system_prompt: str = ""
    created_at: str | None = None


class ChatMessage(BaseModel):
    """A single turn in an adventure's chat history."""

    role: Literal["system", "user", "assistant"]
    content: str
    ts: str | None = None
