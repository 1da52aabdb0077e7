"""
OpenAI implementation of the LLM provider.
"""
import time
import logging
from typing import Any, AsyncIterator, Optional

import openai
from openai import AsyncOpenAI

from .base import (
    ChatRequest,
    ChatResponse,
    LLMProvider,
    ProviderInfo,
    TokenLogprob,
    TokenUsage,
    TopLogprob,
)
from ..config import Settings, get_settings
from ..errors import ConfigurationError, ProviderRequestError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI-based LLM provider."""

    name = "OpenAI"
    version = "1.0.0"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        settings = settings or get_settings()
        if client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY environment variable not set")
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout,
            )
        self._client = client
        self._model = settings.openai_model

    def provider_info(self) -> ProviderInfo:
        models = [self._model]
        models.extend(m for m in ("gpt-4o-mini", "gpt-4o", "gpt-4.1-mini") if m != self._model)
        return ProviderInfo(name=self.name, version=self.version, supported_models=models)

    async def aclose(self) -> None:
        await self._client.close()

    def _build_params(self, request: ChatRequest) -> dict[str, Any]:
        """Convert a ChatRequest to Chat Completions parameters."""
        params: dict[str, Any] = {
            "model": request.model or self.default_model,
            "messages": [
                {"role": msg.role, "content": msg.content}
                for msg in request.messages
            ],
        }

        if request.temperature is not None:
            params["temperature"] = request.temperature
        if request.top_p is not None:
            params["top_p"] = request.top_p
        if request.max_tokens is not None:
            params["max_tokens"] = request.max_tokens
        if request.seed is not None:
            params["seed"] = request.seed
        if request.json_mode:
            params["response_format"] = {"type": "json_object"}
        if request.logprobs:
            params["logprobs"] = True
            if request.top_logprobs is not None:
                params["top_logprobs"] = request.top_logprobs

        return params

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        """Generate a chat completion using OpenAI."""
        start_time = time.time()
        params = self._build_params(request)

        logger.debug(
            "%s request: model=%s, messages=%d, json_mode=%s",
            self.name, params["model"], len(request.messages), request.json_mode
        )

        try:
            completion = await self._client.chat.completions.create(**params)
        except openai.APIError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error("%s error after %dms: %s", self.name, latency_ms, e)
            raise ProviderRequestError(self.name, str(e)) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not completion.choices:
            raise ProviderRequestError(self.name, "response contained no choices")
        choice = completion.choices[0]
        content = choice.message.content
        if content is None:
            raise ProviderRequestError(self.name, "API returned an empty message content")

        usage = _usage_from(completion.usage)

        logger.debug(
            "%s response: latency=%dms, tokens=%s, content_len=%d",
            self.name, latency_ms, usage.total_tokens if usage else None, len(content)
        )

        return ChatResponse(
            content=content,
            model=completion.model,
            latency_ms=latency_ms,
            usage=usage,
            logprobs=_logprobs_from(choice),
        )

    async def stream_chat_completion(self, request: ChatRequest) -> AsyncIterator[ChatResponse]:
        """Stream a chat completion, accumulating deltas client-side."""
        start_time = time.time()
        params = self._build_params(request)
        params["stream"] = True
        params["stream_options"] = {"include_usage": True}

        accumulated = ""
        model = params["model"]
        usage: Optional[TokenUsage] = None

        try:
            stream = await self._client.chat.completions.create(**params)
            async for chunk in stream:
                model = chunk.model or model
                if chunk.usage is not None:
                    usage = _usage_from(chunk.usage)
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content or ""
                if not delta:
                    continue
                accumulated += delta
                yield ChatResponse(
                    content=accumulated,
                    model=model,
                    latency_ms=int((time.time() - start_time) * 1000),
                )
        except openai.APIError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error("%s stream error after %dms: %s", self.name, latency_ms, e)
            raise ProviderRequestError(self.name, str(e)) from e

        yield ChatResponse(
            content=accumulated,
            model=model,
            latency_ms=int((time.time() - start_time) * 1000),
            usage=usage,
        )


def _usage_from(raw: Any) -> Optional[TokenUsage]:
    if raw is None:
        return None
    return TokenUsage(
        prompt_tokens=getattr(raw, "prompt_tokens", None),
        completion_tokens=getattr(raw, "completion_tokens", None),
        total_tokens=getattr(raw, "total_tokens", None),
    )


def _logprobs_from(choice: Any) -> Optional[list[TokenLogprob]]:
    raw = getattr(choice, "logprobs", None)
    if raw is None or not raw.content:
        return None
    return [
        TokenLogprob(
            token=item.token,
            logprob=item.logprob,
            top_logprobs=tuple(
                TopLogprob(token=alt.token, logprob=alt.logprob)
                for alt in (item.top_logprobs or [])
            ),
        )
        for item in raw.content
    ]
