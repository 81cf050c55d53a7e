from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path

from fastapi import FastAPI

from story_engine.cache import MemoryContextCache
from story_engine.config import Settings, load_settings
from story_engine.context import ContextAssembler
from story_engine.llm import ChatLLM, OllamaChatLLM
from story_engine.routes import router
from story_engine.state import CharacterStateService
from story_engine.storage import Storage


def create_app(
    data_dir: Path | None = None,
    settings: Settings | None = None,
    llm: ChatLLM | None = None,
) -> FastAPI:
    resolved = settings or load_settings()
    if data_dir is not None:
        resolved = replace(resolved, data_dir=data_dir)

    storage = Storage(resolved.data_dir)
    cache = MemoryContextCache().init()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        cache.shutdown()

    app = FastAPI(title="Story Engine", lifespan=lifespan)
    app.state.settings = resolved
    app.state.storage = storage
    app.state.cache = cache
    app.state.assembler = ContextAssembler(storage, cache, ttl=resolved.context_cache_ttl)
    app.state.state_service = CharacterStateService(storage, cache)
    app.state.llm = llm or OllamaChatLLM(resolved.ollama_url, timeout=resolved.llm_timeout)
    app.include_router(router, prefix="/api")
    return app
