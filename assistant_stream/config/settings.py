"""Environment-driven settings."""

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import DEFAULT_CATALOG_TTL_SECONDS, DEFAULT_STREAM_TTL_SECONDS
from .models import DEFAULT_CHAT_MODEL

ResumableBackend = Literal["memory", "redis", "none"]


class Settings(BaseModel):
    """Runtime configuration for the chat stream service."""
    openai_api_key: Optional[str] = None
    openai_timeout: float = Field(default=60.0, gt=0)
    openai_prompt_id: Optional[str] = None
    chat_model: str = DEFAULT_CHAT_MODEL
    system_prompt: str = "You are a friendly assistant! Keep your responses concise and helpful."
    resumable_streams: ResumableBackend = "memory"
    redis_url: Optional[str] = None
    stream_ttl_seconds: int = DEFAULT_STREAM_TTL_SECONDS
    model_catalog_url: Optional[str] = None
    model_catalog_ttl_seconds: float = DEFAULT_CATALOG_TTL_SECONDS


def _env_number(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def load_settings() -> Settings:
    """Build settings from the process environment (and a .env file if present)."""
    load_dotenv()

    backend = os.getenv("RESUMABLE_STREAMS", "memory").lower()
    if backend not in ("memory", "redis", "none"):
        backend = "memory"

    values = {
        "openai_api_key": os.getenv("OPENAI_API_KEY"),
        "openai_timeout": _env_number("OPENAI_TIMEOUT", 60.0),
        "openai_prompt_id": os.getenv("OPENAI_PROMPT_ID") or None,
        "chat_model": os.getenv("ASSISTANT_CHAT_MODEL", DEFAULT_CHAT_MODEL),
        "resumable_streams": backend,
        "redis_url": os.getenv("REDIS_URL") or None,
        "stream_ttl_seconds": int(_env_number("STREAM_TTL_SECONDS", DEFAULT_STREAM_TTL_SECONDS)),
        "model_catalog_url": os.getenv("MODEL_CATALOG_URL") or None,
        "model_catalog_ttl_seconds": _env_number("MODEL_CATALOG_TTL_SECONDS", DEFAULT_CATALOG_TTL_SECONDS),
    }
    system_prompt = os.getenv("ASSISTANT_SYSTEM_PROMPT")
    if system_prompt:
        values["system_prompt"] = system_prompt

    return Settings(**values)
