"""Handlebars rendering for adventure system prompts.

An adventure may carry its own system_prompt template. It is rendered with
the assembled character context and the instance's fields:

    {{{char.name}}}, {{{char.age}}}, {{{char.background}}},
    {{{char.personality}}}, {{{char.appearance}}}, {{{char.scents}}}  (rendered text)
    {{{context}}}  (full context)

Triple braces skip HTML escaping; double braces escape quotes and ampersands.

Without a template the assembled character context is the system prompt.
"""

from collections.abc import Callable
from typing import Any

import pybars

from story_engine.models import Adventure, CharacterInstance
from story_engine.parser import attribute_to_text

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_prompt_context(character_context: str, instance: CharacterInstance | None) -> dict[str, Any]:
    ctx: dict[str, Any] = {"context": character_context}
    if instance is not None:
        ctx["char"] = {
            "name": instance.name,
            "age": instance.age if instance.age is not None else "",
            "background": instance.background,
            "personality": attribute_to_text(instance.personality),
            "appearance": attribute_to_text(instance.appearance),
            "scents": attribute_to_text(instance.scents_aromas),
        }
    return ctx


def build_system_prompt(
    adventure: Adventure,
    character_context: str,
    instance: CharacterInstance | None = None,
) -> str:
    """Adventure template if set, otherwise the plain character context."""
    if not adventure.system_prompt.strip():
        return character_context
    return render_prompt(adventure.system_prompt, build_prompt_context(character_context, instance))
