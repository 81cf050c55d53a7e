"""LLM client: HTTP connection to an Ollama-style chat backend.

The chat turn injects an object matching the protocol:

    async def chat(self, model: str, messages: list[dict], options: dict) -> ChatResult: ...

Two implementations are provided:

    OllamaChatLLM — real HTTP client, POST {base}/api/chat with stream=false.
    EchoChatLLM   — echoes the last user message. Useful for smoke-testing
                    the turn wiring without a running model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Protocol: every chat implementation must match this signature
# ---------------------------------------------------------------------------

class ChatLLM(Protocol):
    async def chat(
        self, model: str, messages: list[dict[str, str]], options: dict[str, Any] | None = None
    ) -> ChatResult: ...


# ---------------------------------------------------------------------------
# OllamaChatLLM: connects to a real backend
# ---------------------------------------------------------------------------

# Response fields passed through as metadata when present
_METADATA_FIELDS = (
    "model",
    "created_at",
    "done_reason",
    "total_duration",
    "prompt_eval_count",
    "eval_count",
)


class OllamaChatLLM:
    """Async HTTP client for the Ollama chat API.

    Request:  POST /api/chat {"model", "messages", "options", "stream": false}
    Response: {"message": {"role": "assistant", "content": "..."}, "model": ..., ...}

    Args:
        base_url: Base URL of the backend, e.g. "http://localhost:11434".
        timeout:  HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(self, base_url: str, timeout: float = 120.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _parse_response(self, data: Any) -> ChatResult:
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict) or "content" not in message:
            raise LLMError("Unexpected response format from Ollama backend")
        metadata = {k: data[k] for k in _METADATA_FIELDS if k in data}
        return ChatResult(content=message["content"], metadata=metadata)

    async def chat(
        self, model: str, messages: list[dict[str, str]], options: dict[str, Any] | None = None
    ) -> ChatResult:
        url = f"{self._base_url}/api/chat"
        body: dict[str, Any] = {"model": model, "messages": messages, "stream": False}
        if options:
            body["options"] = options
        logger.debug("llm chat model=%s url=%s messages=%d", model, url, len(messages))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM backend returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        result = self._parse_response(resp.json())
        logger.debug("llm response model=%s len=%d", model, len(result.content))
        return result


# ---------------------------------------------------------------------------
# EchoChatLLM: no network calls
# ---------------------------------------------------------------------------

class EchoChatLLM:
    """Returns the last user message as the assistant reply."""

    async def chat(
        self, model: str, messages: list[dict[str, str]], options: dict[str, Any] | None = None
    ) -> ChatResult:
        last_user = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        logger.debug("EchoChatLLM model=%s messages=%d", model, len(messages))
        return ChatResult(content=last_user, metadata={"model": model})


# ---------------------------------------------------------------------------
# LLMError: raised by OllamaChatLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
