"""Runtime settings from the environment (.env supported) and logging setup."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = ROOT / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    ollama_url: str
    ollama_model: str
    context_cache_ttl: int
    chat_history_window: int
    llm_timeout: float
    log_level: str


def load_settings() -> Settings:
    load_dotenv(ROOT / ".env")
    return Settings(
        data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))),
        ollama_url=os.getenv("OLLAMA_URL", "http://localhost:11434"),
        ollama_model=os.getenv("OLLAMA_MODEL", "llama3"),
        context_cache_ttl=int(os.getenv("CONTEXT_CACHE_TTL", "300")),
        chat_history_window=int(os.getenv("CHAT_HISTORY_WINDOW", "10")),
        llm_timeout=float(os.getenv("LLM_TIMEOUT", "120")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the app entry point."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
