"""Chat turn: one player message in, one character reply out.

Turn flow:
  1. Verify the adventure belongs to the user.
  2. Assemble the character context (cache first, fail-open).
  3. Build the system prompt: adventure template if set, else the context.
  4. Inject conversation-relevant trait details into the system prompt.
  5. Send [system] + the last `history_window` turns + the new user message.
  6. Append the user message and the reply to the adventure history.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from story_engine.context import ContextAssembler
from story_engine.llm import ChatLLM
from story_engine.models import ChatMessage
from story_engine.prompts import PromptError, build_system_prompt
from story_engine.storage import NotFoundError, Storage
from story_engine.traits import enhance_system_prompt

logger = logging.getLogger(__name__)


def build_chat_messages(
    system_prompt: str,
    history: list[ChatMessage],
    message: str,
    history_window: int,
) -> list[dict[str, str]]:
    """Wire-format message list; the system message is omitted when empty."""
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    window = history[-history_window:] if history_window > 0 else []
    for m in window:
        if m.role == "system":
            continue
        messages.append({"role": m.role, "content": m.content})
    messages.append({"role": "user", "content": message})
    return messages


async def run_chat_turn(
    *,
    storage: Storage,
    assembler: ContextAssembler,
    llm: ChatLLM,
    adventure_id: str,
    user_id: str,
    message: str,
    model: str,
    history_window: int = 10,
    options: dict[str, Any] | None = None,
) -> ChatMessage:
    """Execute one chat turn and return the assistant message appended this turn."""
    adventure = storage.get_adventure(adventure_id, user_id)
    if adventure is None:
        raise NotFoundError("Adventure not found or not accessible")

    character_context = assembler.build_character_context(adventure_id)
    instance = storage.get_character_instance(adventure_id)
    history = storage.get_messages(adventure_id)
    user_msg = ChatMessage(role="user", content=message, ts=datetime.now(timezone.utc).isoformat())

    try:
        system_prompt = build_system_prompt(adventure, character_context, instance)
    except PromptError:
        logger.warning("Adventure %s system prompt failed to render, using character context", adventure_id)
        system_prompt = character_context

    if instance is not None and system_prompt:
        enhancement = enhance_system_prompt(system_prompt, instance, [*history, user_msg])
        if enhancement.traits_injected:
            logger.debug(
                "Enhanced system prompt with %d trait(s): %s",
                len(enhancement.traits_injected), ", ".join(enhancement.traits_injected),
            )
        system_prompt = enhancement.enhanced_prompt

    result = await llm.chat(
        model, build_chat_messages(system_prompt, history, message, history_window), options
    )

    reply = ChatMessage(
        role="assistant",
        content=result.content.strip(),
        ts=datetime.now(timezone.utc).isoformat(),
    )
    storage.append_messages(adventure_id, [user_msg, reply])
    return reply
