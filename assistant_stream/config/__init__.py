"""Configuration module for the assistant stream service."""

from .models import (
    CHAT_MODELS,
    DEFAULT_CHAT_MODEL,
    MODEL_CONFIGS,
    resolve_chat_model
)
from .settings import Settings, load_settings

# Import all constants
from .constants import *

__all__ = [
    "CHAT_MODELS",
    "DEFAULT_CHAT_MODEL",
    "MODEL_CONFIGS",
    "resolve_chat_model",
    "Settings",
    "load_settings"
]
