"""Shared fixtures for the mini-app tests."""

from __future__ import annotations

from typing import AsyncIterator, Optional, Union

import pytest

from miniapps.config import Settings
from miniapps.llm import ChatRequest, ChatResponse, LLMProvider, ProviderInfo, TokenUsage
from miniapps.weather import CurrentWeather, GeocodeResult


class FakeProvider(LLMProvider):
    """Scripted provider: returns (or raises) the queued replies in order."""

    def __init__(
        self,
        replies: Optional[list[Union[str, Exception]]] = None,
        models: Optional[list[str]] = None,
    ):
        self.replies = list(replies or [])
        self.models = ["fake-model"] if models is None else models
        self.requests: list[ChatRequest] = []
        self.closed = False

    def provider_info(self) -> ProviderInfo:
        return ProviderInfo(name="Fake", version="0.1", supported_models=self.models)

    def _next_reply(self) -> str:
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        return ChatResponse(
            content=self._next_reply(),
            model=request.model or "fake-model",
            latency_ms=12,
            usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )

    async def stream_chat_completion(self, request: ChatRequest) -> AsyncIterator[ChatResponse]:
        self.requests.append(request)
        text = self._next_reply()
        accumulated = ""
        for word in text.split(" "):
            accumulated = f"{accumulated} {word}" if accumulated else word
            yield ChatResponse(content=accumulated, model="fake-model", latency_ms=1)
        yield ChatResponse(
            content=accumulated,
            model="fake-model",
            latency_ms=2,
            usage=TokenUsage(total_tokens=3),
        )

    async def aclose(self) -> None:
        self.closed = True


class FakeWeatherClient:
    """Records lookups and returns canned results."""

    def __init__(
        self,
        place: Optional[GeocodeResult] = GeocodeResult(48.85, 2.35, "Paris"),
        current: Optional[CurrentWeather] = CurrentWeather(18.5, 0, 12.3),
    ):
        self.place = place
        self.current = current
        self.geocoded: list[str] = []
        self.looked_up: list[tuple[float, float]] = []
        self.closed = False

    async def geocode(self, city_name):
        self.geocoded.append(city_name)
        return self.place

    async def current_weather(self, latitude, longitude):
        self.looked_up.append((latitude, longitude))
        return self.current

    async def aclose(self):
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    """Settings with every provider configured and no .env lookups."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        openai_model="gpt-4o-mini",
        deepseek_api_key="ds-test",
        deepseek_base_url="https://api.deepseek.test",
        gemini_api_key="gm-test",
        gemini_model="gemini-2.0-flash",
        gemini_base_url="https://gemini.test/v1beta",
        geocoding_url="https://geo.test/v1/search",
        forecast_url="https://forecast.test/v1/forecast",
    )


@pytest.fixture
def empty_settings() -> Settings:
    """Settings with no credentials at all."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        deepseek_api_key="",
        deepseek_base_url="",
        gemini_api_key="",
    )
