"""
Factory for creating LLM provider instances.
"""
import logging
from typing import Callable, Optional

from .base import LLMProvider
from .deepseek_provider import DeepseekProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


DEFAULT_PROVIDER = "openai"

PROVIDERS: dict[str, Callable[[Settings], LLMProvider]] = {
    "openai": OpenAIProvider,
    "deepseek": DeepseekProvider,
    "gemini": GeminiProvider,
}


def resolve_provider_name(name: Optional[str]) -> str:
    """
    Map a requested provider name to a supported one.

    Matching is case-insensitive. A missing name selects the default; an
    unknown name logs a warning and also selects the default. Never raises.
    """
    if not name or not name.strip():
        return DEFAULT_PROVIDER

    key = name.strip().lower()
    if key not in PROVIDERS:
        logger.warning('Unknown provider "%s". Defaulting to %s.', name, DEFAULT_PROVIDER)
        return DEFAULT_PROVIDER
    return key


def create_provider(name: Optional[str], settings: Optional[Settings] = None) -> LLMProvider:
    """
    Build the provider selected by name.

    Raises:
        ConfigurationError: the selected provider's credentials are missing
    """
    settings = settings or get_settings()
    key = resolve_provider_name(name)

    logger.info("Initializing LLM provider: %s", key)
    return PROVIDERS[key](settings)
