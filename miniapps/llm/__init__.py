"""
LLM provider layer.

The mini-apps don't care which LLM is behind a provider - they build a
ChatRequest and get a ChatResponse back.
"""
from .base import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    LLMProvider,
    ProviderInfo,
    TokenLogprob,
    TokenUsage,
    TopLogprob,
)
from .deepseek_provider import DeepseekProvider
from .factory import create_provider, resolve_provider_name
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "LLMProvider",
    "ProviderInfo",
    "TokenLogprob",
    "TokenUsage",
    "TopLogprob",
    "OpenAIProvider",
    "DeepseekProvider",
    "GeminiProvider",
    "create_provider",
    "resolve_provider_name",
]
