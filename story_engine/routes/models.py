"""Pydantic request/response models for API endpoints."""

from typing import Any

from pydantic import BaseModel


class ParseBody(BaseModel):
    text: str


class RenderBody(BaseModel):
    data: dict[str, Any]


class CreateTemplate(BaseModel):
    name: str
    age: int | None = None
    background: str = ""
    appearance_text: str = ""
    personality_text: str = ""
    scents_text: str = ""
    tags: str = ""


class UpdateTemplate(BaseModel):
    name: str | None = None
    age: int | None = None
    background: str | None = None
    appearance_text: str | None = None
    personality_text: str | None = None
    scents_text: str | None = None
    tags: str | None = None


class StartAdventure(BaseModel):
    template_id: str
    title: str
    system_prompt: str = ""


class StateUpdateBody(BaseModel):
    updates: dict[str, str]
    context: str | None = None


class ChatBody(BaseModel):
    message: str
