"""JSON file storage.

All state is stored in flat JSON files under a configurable base directory.
There is no database or ORM; reads and writes go through plain helper
methods that load and dump JSON, validated through the pydantic models.

Directory layout:

    {base}/
      templates/
        {id}.json             ← CharacterTemplate
      adventures/
        {id}.json             ← Adventure metadata
        {id}/
          character.json      ← CharacterInstance (incl. state_updates)
          messages.json       ← chat history, list of ChatMessage

Starting an adventure copies the template into character.json; the
template itself is never touched by anything that happens in the
adventure afterwards.
"""

from __future__ import annotations

import json
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from story_engine.models import (
    Adventure,
    CharacterInstance,
    CharacterTemplate,
    ChatMessage,
    StateUpdate,
    StateUpdateMap,
)


class StoryEngineError(Exception):
    """Base class for errors surfaced to callers of the engine."""


class NotFoundError(StoryEngineError):
    """Raised when a record a write path depends on does not exist or is not owned."""


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._templates_root = base_path / "templates"
        self._adv_root = base_path / "adventures"
        self._templates_root.mkdir(parents=True, exist_ok=True)
        self._adv_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _template_file(self, template_id: str) -> Path:
        return self._templates_root / f"{template_id}.json"

    def _adv_file(self, adventure_id: str) -> Path:
        return self._adv_root / f"{adventure_id}.json"

    def _adv_dir(self, adventure_id: str) -> Path:
        return self._adv_root / adventure_id

    def _character_file(self, adventure_id: str) -> Path:
        return self._adv_dir(adventure_id) / "character.json"

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2))

    # ------------------------------------------------------------------
    # Character templates
    # ------------------------------------------------------------------

    def create_template(self, user_id: str, name: str, **fields: Any) -> CharacterTemplate:
        template = CharacterTemplate(id=_new_id(), user_id=user_id, name=name, **fields)
        self._template_file(template.id).write_text(template.model_dump_json(indent=2))
        return template

    def get_template(self, template_id: str, user_id: str | None = None) -> CharacterTemplate | None:
        path = self._template_file(template_id)
        if not path.is_file():
            return None
        template = CharacterTemplate.model_validate_json(path.read_text())
        if user_id is not None and template.user_id != user_id:
            return None
        return template

    def update_template(self, template_id: str, user_id: str, fields: dict[str, Any]) -> CharacterTemplate:
        """Apply field changes to a template. Running adventures keep their own copy."""
        template = self.get_template(template_id, user_id)
        if template is None:
            raise NotFoundError(f"Character template {template_id!r} not found")
        allowed = {"name", "age", "background", "appearance", "personality", "scents_aromas", "tags"}
        updated = template.model_copy(update={k: v for k, v in fields.items() if k in allowed})
        updated = CharacterTemplate.model_validate(updated.model_dump())
        self._template_file(template_id).write_text(updated.model_dump_json(indent=2))
        return updated

    def delete_template(self, template_id: str, user_id: str) -> bool:
        if self.get_template(template_id, user_id) is None:
            return False
        self._template_file(template_id).unlink()
        return True

    # ------------------------------------------------------------------
    # Adventures
    # ------------------------------------------------------------------

    def start_adventure(
        self,
        user_id: str,
        template_id: str,
        title: str,
        system_prompt: str = "",
    ) -> Adventure:
        """Create an adventure with a point-in-time copy of the template's character."""
        template = self.get_template(template_id, user_id)
        if template is None:
            raise NotFoundError(f"Character template {template_id!r} not found")

        adventure_id = _new_id()
        instance = CharacterInstance(
            id=_new_id(),
            adventure_id=adventure_id,
            user_id=user_id,
            template_id=template.id,
            name=template.name,
            age=template.age,
            background=template.background,
            appearance=json.loads(json.dumps(template.appearance)),
            personality=json.loads(json.dumps(template.personality)),
            scents_aromas=json.loads(json.dumps(template.scents_aromas)),
            updated_at=_now(),
        )
        adventure = Adventure(
            id=adventure_id,
            user_id=user_id,
            title=title,
            character_id=instance.id,
            system_prompt=system_prompt,
            created_at=_now(),
        )
        self._adv_file(adventure_id).write_text(adventure.model_dump_json(indent=2))
        self._adv_dir(adventure_id).mkdir(exist_ok=True)
        self.save_character_instance(instance)
        self._write_json(self._adv_dir(adventure_id) / "messages.json", [])
        return adventure

    def get_adventure(self, adventure_id: str, user_id: str | None = None) -> Adventure | None:
        """Load an adventure; with user_id, adventures owned by someone else read as missing."""
        path = self._adv_file(adventure_id)
        if not path.is_file():
            return None
        adventure = Adventure.model_validate_json(path.read_text())
        if user_id is not None and adventure.user_id != user_id:
            return None
        return adventure

    def delete_adventure(self, adventure_id: str, user_id: str) -> bool:
        """Remove an adventure together with its character instance and history."""
        if self.get_adventure(adventure_id, user_id) is None:
            return False
        self._adv_file(adventure_id).unlink()
        child_dir = self._adv_dir(adventure_id)
        if child_dir.is_dir():
            shutil.rmtree(child_dir)
        return True

    # ------------------------------------------------------------------
    # Character instances
    # ------------------------------------------------------------------

    def get_character_instance(self, adventure_id: str) -> CharacterInstance | None:
        path = self._character_file(adventure_id)
        if not path.is_file():
            return None
        return CharacterInstance.model_validate_json(path.read_text())

    def save_character_instance(self, instance: CharacterInstance) -> None:
        self._adv_dir(instance.adventure_id).mkdir(parents=True, exist_ok=True)
        self._character_file(instance.adventure_id).write_text(instance.model_dump_json(indent=2))

    def get_state_updates(self, adventure_id: str) -> StateUpdateMap:
        """Return the instance's state updates, {} when there are none (or no instance)."""
        instance = self.get_character_instance(adventure_id)
        if instance is None:
            return {}
        return instance.state_updates

    def write_state_updates(self, adventure_id: str, updates: StateUpdateMap) -> None:
        """Replace the stored StateUpdateMap wholesale. Callers merge first."""
        instance = self.get_character_instance(adventure_id)
        if instance is None:
            raise NotFoundError(f"Adventure character for {adventure_id!r} not found")
        instance.state_updates = {
            field: StateUpdate.model_validate(update) for field, update in updates.items()
        }
        instance.updated_at = _now()
        self.save_character_instance(instance)

    # ------------------------------------------------------------------
    # Messages (append-only)
    # ------------------------------------------------------------------

    def get_messages(self, adventure_id: str) -> list[ChatMessage]:
        path = self._adv_dir(adventure_id) / "messages.json"
        if not path.exists():
            return []
        return [ChatMessage.model_validate(m) for m in self._read_json(path)]

    def append_messages(self, adventure_id: str, messages: list[ChatMessage]) -> None:
        existing = self.get_messages(adventure_id)
        existing.extend(messages)
        self._adv_dir(adventure_id).mkdir(parents=True, exist_ok=True)
        self._write_json(
            self._adv_dir(adventure_id) / "messages.json",
            [m.model_dump() for m in existing],
        )
