"""
Gemini implementation of the LLM provider.

Talks to the Gemini REST API directly with httpx. Gemini has its own wire
format: no system role, "model" instead of "assistant", and strictly
alternating user/model turns. translate_messages() and split_history()
handle the conversion from the shared ChatMessage list.
"""
import json
import time
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Optional

import httpx

from .base import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    LLMProvider,
    ProviderInfo,
    TokenUsage,
)
from ..config import Settings, get_settings
from ..errors import ConfigurationError, ProviderRequestError

logger = logging.getLogger(__name__)


@dataclass
class GeminiTurn:
    """One turn of Gemini chat history."""
    role: str  # "user" or "model"
    text: str

    def to_content(self) -> dict:
        return {"role": self.role, "parts": [{"text": self.text}]}


def translate_messages(messages: Iterable[ChatMessage]) -> list[GeminiTurn]:
    """
    Translate role-tagged messages into Gemini's alternating history.

    System messages are dropped, assistant becomes "model", empty messages
    are skipped and consecutive messages from the same role are merged
    with a newline.
    """
    history: list[GeminiTurn] = []

    for message in messages:
        if message.role == "system":
            continue
        role = "model" if message.role == "assistant" else "user"
        if not message.content:
            continue

        if history and history[-1].role == role:
            logger.debug("Consecutive '%s' messages detected. Combining content.", role)
            history[-1].text += "\n" + message.content
        else:
            history.append(GeminiTurn(role=role, text=message.content))

    return history


def split_history(history: list[GeminiTurn]) -> tuple[list[GeminiTurn], GeminiTurn]:
    """Split translated history into prior turns and the final user turn."""
    if not history:
        raise ProviderRequestError(GeminiProvider.name, "final message must be user text")

    prior, final = history[:-1], history[-1]
    if final.role != "user" or not final.text:
        raise ProviderRequestError(GeminiProvider.name, "final message must be user text")

    if prior and prior[-1].role != "model":
        logger.warning("Gemini chat history does not end with a model turn. This might cause issues.")

    return prior, final


class GeminiProvider(LLMProvider):
    """LLM provider using the Gemini REST API."""

    name = "Gemini"
    version = "1.0.0"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        if not settings.gemini_api_key:
            raise ConfigurationError(
                "Gemini API key is missing. Set the GEMINI_API_KEY environment variable."
            )
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_model
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.llm_timeout)

    def provider_info(self) -> ProviderInfo:
        models = [self._model]
        models.extend(
            m for m in ("gemini-2.0-flash", "gemini-1.5-flash-latest", "gemini-1.5-pro-latest")
            if m != self._model
        )
        return ProviderInfo(name=self.name, version=self.version, supported_models=models)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_body(self, request: ChatRequest) -> dict[str, Any]:
        prior, final = split_history(translate_messages(request.messages))

        generation_config: dict[str, Any] = {}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.max_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_tokens
        if request.seed is not None:
            generation_config["seed"] = request.seed
        if request.json_mode:
            generation_config["responseMimeType"] = "application/json"

        body: dict[str, Any] = {
            "contents": [turn.to_content() for turn in [*prior, final]],
        }
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def _url(self, model: str, method: str) -> str:
        return f"{self._base_url}/models/{model}:{method}"

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._api_key}

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        """Generate a chat completion using Gemini."""
        start_time = time.time()
        model = request.model or self.default_model
        body = self._build_body(request)

        logger.debug(
            "%s request: model=%s, turns=%d",
            self.name, model, len(body["contents"])
        )

        try:
            response = await self._client.post(
                self._url(model, "generateContent"),
                json=body,
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            detail = _error_detail(e.response)
            logger.error("%s error after %dms: %s", self.name, latency_ms, detail)
            raise ProviderRequestError(self.name, detail) from e
        except (httpx.HTTPError, ValueError) as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error("%s error after %dms: %s", self.name, latency_ms, e)
            raise ProviderRequestError(self.name, str(e)) from e

        latency_ms = int((time.time() - start_time) * 1000)

        payload = _read_payload(data)
        if not payload.has_candidates:
            raise ProviderRequestError(self.name, "response contained no candidates")

        return ChatResponse(
            content=payload.text,
            model=payload.model_version or model,
            latency_ms=latency_ms,
            usage=payload.usage,
        )

    async def stream_chat_completion(self, request: ChatRequest) -> AsyncIterator[ChatResponse]:
        """Stream a chat completion over server-sent events."""
        start_time = time.time()
        model = request.model or self.default_model
        body = self._build_body(request)

        accumulated = ""
        usage: Optional[TokenUsage] = None

        try:
            async with self._client.stream(
                "POST",
                self._url(model, "streamGenerateContent"),
                params={"alt": "sse"},
                json=body,
                headers=self._headers,
            ) as response:
                if response.is_error:
                    await response.aread()
                    detail = _error_detail(response)
                    logger.error("%s stream error: %s", self.name, detail)
                    raise ProviderRequestError(self.name, detail)

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    payload = _read_payload(json.loads(line[len("data:"):].strip()))

                    usage = payload.usage or usage
                    model = payload.model_version or model

                    if payload.finish_reason and payload.finish_reason != "STOP":
                        logger.warning("Gemini stream finished with reason: %s", payload.finish_reason)

                    if not payload.text:
                        continue
                    accumulated += payload.text
                    yield ChatResponse(
                        content=accumulated,
                        model=model,
                        latency_ms=int((time.time() - start_time) * 1000),
                    )
        except (httpx.HTTPError, ValueError) as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error("%s stream error after %dms: %s", self.name, latency_ms, e)
            raise ProviderRequestError(self.name, str(e)) from e

        yield ChatResponse(
            content=accumulated,
            model=model,
            latency_ms=int((time.time() - start_time) * 1000),
            usage=usage,
        )


@dataclass
class GeminiPayload:
    """The parts of a generateContent response body the adapter uses."""
    text: str
    has_candidates: bool
    finish_reason: Optional[str] = None
    model_version: Optional[str] = None
    usage: Optional[TokenUsage] = None


def _read_payload(data: Any) -> GeminiPayload:
    """
    Map a generateContent response body (or one streamed chunk).

    Raises:
        ProviderRequestError: the body doesn't have the response shape
    """
    try:
        candidates = data.get("candidates") or []
        first = candidates[0] if candidates else {}
        parts = (first.get("content") or {}).get("parts") or []
        return GeminiPayload(
            text="".join(part.get("text", "") for part in parts),
            has_candidates=bool(candidates),
            finish_reason=first.get("finishReason"),
            model_version=data.get("modelVersion"),
            usage=_usage_from(data.get("usageMetadata")),
        )
    except (AttributeError, TypeError, KeyError, IndexError) as e:
        logger.error("Malformed Gemini payload: %r", data)
        raise ProviderRequestError(GeminiProvider.name, f"malformed response payload ({e})") from e


def _usage_from(raw: Optional[dict]) -> Optional[TokenUsage]:
    if not raw:
        return None
    return TokenUsage(
        prompt_tokens=raw.get("promptTokenCount"),
        completion_tokens=raw.get("candidatesTokenCount"),
        total_tokens=raw.get("totalTokenCount"),
    )


def _error_detail(response: httpx.Response) -> str:
    """Pull Gemini's own error message out of an error response."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}: {response.text[:200]}"
