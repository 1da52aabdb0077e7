"""
DeepSeek implementation of the LLM provider.

DeepSeek exposes an OpenAI-compatible endpoint, so this reuses the OpenAI
request/response translation with a different base URL. Streaming is not
used: stream_chat_completion returns one aggregated chunk.
"""
import logging
from typing import AsyncIterator, Optional

from openai import AsyncOpenAI

from .base import ChatRequest, ChatResponse, ProviderInfo
from .openai_provider import OpenAIProvider
from ..config import Settings, get_settings
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class DeepseekProvider(OpenAIProvider):
    """LLM provider using DeepSeek's OpenAI-compatible API."""

    name = "Deepseek"
    version = "v1"
    known_models = ("deepseek-chat", "deepseek-reasoner")

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        settings = settings or get_settings()
        if client is None:
            if not settings.deepseek_api_key:
                raise ConfigurationError("DEEPSEEK_API_KEY environment variable is not set.")
            if not settings.deepseek_base_url:
                raise ConfigurationError("DEEPSEEK_BASE_URL environment variable is not set.")
            client = AsyncOpenAI(
                api_key=settings.deepseek_api_key,
                base_url=settings.deepseek_base_url,
                timeout=settings.llm_timeout,
            )
        self._client = client
        self._model = settings.deepseek_model

    def provider_info(self) -> ProviderInfo:
        models = [self._model]
        models.extend(m for m in self.known_models if m != self._model)
        return ProviderInfo(name=self.name, version=self.version, supported_models=models)

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        target = request.model or self.default_model
        if target not in self.provider_info().supported_models:
            logger.warning(
                "Model %s might not be supported by DeepseekProvider. Using it anyway.",
                target,
            )
        return await super().chat_completion(request)

    async def stream_chat_completion(self, request: ChatRequest) -> AsyncIterator[ChatResponse]:
        """Fall back to a single aggregated response."""
        logger.info("Streaming not used for DeepseekProvider. Falling back to non-streaming.")
        yield await self.chat_completion(request)
