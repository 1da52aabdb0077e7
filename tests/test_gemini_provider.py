"""Tests for the Gemini provider and its message translation."""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from miniapps.errors import ProviderRequestError
from miniapps.llm import ChatMessage, ChatRequest, GeminiProvider
from miniapps.llm.gemini_provider import GeminiTurn, split_history, translate_messages


def msg(role, content):
    return ChatMessage(role=role, content=content)


def gemini_reply(text, **extra):
    body = {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}
        ],
        "usageMetadata": {"promptTokenCount": 8, "candidatesTokenCount": 4, "totalTokenCount": 12},
    }
    body.update(extra)
    return body


def make_provider(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiProvider(settings, client=client)


class TestTranslateMessages:
    """Tests for the role/turn translation."""

    def test_system_dropped_and_same_roles_merged(self):
        history = translate_messages([
            msg("system", "rules"),
            msg("user", "A"),
            msg("user", "B"),
            msg("assistant", "C"),
        ])

        assert history == [GeminiTurn("user", "A\nB"), GeminiTurn("model", "C")]
        assert history[-1] == GeminiTurn("model", "C")

    def test_alternating_roles_kept(self):
        history = translate_messages([
            msg("user", "hi"),
            msg("assistant", "hello"),
            msg("user", "weather?"),
        ])

        assert [t.role for t in history] == ["user", "model", "user"]

    def test_empty_messages_skipped(self):
        history = translate_messages([msg("user", "A"), msg("assistant", ""), msg("user", "B")])

        assert history == [GeminiTurn("user", "A\nB")]

    def test_to_content(self):
        assert GeminiTurn("model", "C").to_content() == {"role": "model", "parts": [{"text": "C"}]}


class TestSplitHistory:
    """Tests for splitting prior turns from the final user turn."""

    def test_split(self):
        prior, final = split_history([
            GeminiTurn("user", "hi"),
            GeminiTurn("model", "hello"),
            GeminiTurn("user", "bye"),
        ])

        assert prior == [GeminiTurn("user", "hi"), GeminiTurn("model", "hello")]
        assert final == GeminiTurn("user", "bye")

    def test_final_model_turn_rejected(self):
        with pytest.raises(ProviderRequestError, match="final message must be user text"):
            split_history([GeminiTurn("user", "A\nB"), GeminiTurn("model", "C")])

    def test_empty_history_rejected(self):
        with pytest.raises(ProviderRequestError, match="final message must be user text"):
            split_history([])

    def test_prior_not_ending_on_model_only_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="miniapps.llm.gemini_provider"):
            prior, final = split_history([GeminiTurn("user", "one"), GeminiTurn("user", "two")])

        assert final.text == "two"
        assert len(prior) == 1
        assert "does not end with a model turn" in caplog.text


class TestGeminiProvider:
    """Tests for GeminiProvider over a mocked transport."""

    def test_provider_info(self, settings):
        provider = make_provider(settings, lambda request: httpx.Response(200))
        info = provider.provider_info()

        assert info.name == "Gemini"
        assert info.supported_models[0] == "gemini-2.0-flash"
        assert len(info.supported_models) == len(set(info.supported_models))

    @pytest.mark.asyncio
    async def test_completion(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply("Hi!", modelVersion="gemini-2.0-flash-001"))

        provider = make_provider(settings, handler)
        response = await provider.chat_completion(
            ChatRequest(
                messages=(msg("system", "Be nice"), msg("user", "Hello")),
                temperature=0.5,
                top_p=0.9,
                max_tokens=100,
                json_mode=True,
            )
        )

        assert response.content == "Hi!"
        assert response.model == "gemini-2.0-flash-001"
        assert response.usage.prompt_tokens == 8
        assert response.usage.completion_tokens == 4
        assert response.usage.total_tokens == 12
        assert seen["url"] == "https://gemini.test/v1beta/models/gemini-2.0-flash:generateContent"
        assert seen["key"] == "gm-test"
        assert seen["body"]["contents"] == [{"role": "user", "parts": [{"text": "Hello"}]}]
        assert seen["body"]["generationConfig"] == {
            "temperature": 0.5,
            "topP": 0.9,
            "maxOutputTokens": 100,
            "responseMimeType": "application/json",
        }

    @pytest.mark.asyncio
    async def test_completion_uses_requested_model_when_not_reported(self, settings):
        provider = make_provider(settings, lambda request: httpx.Response(200, json=gemini_reply("ok")))

        response = await provider.chat_completion(
            ChatRequest(messages=(msg("user", "Hello"),), model="gemini-1.5-pro-latest")
        )

        assert response.model == "gemini-1.5-pro-latest"

    @pytest.mark.asyncio
    async def test_history_sent_in_order(self, settings):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply("fine"))

        provider = make_provider(settings, handler)
        await provider.chat_completion(
            ChatRequest(messages=(msg("user", "hi"), msg("assistant", "hello"), msg("user", "how are you?")))
        )

        assert [c["role"] for c in seen["body"]["contents"]] == ["user", "model", "user"]
        assert "generationConfig" not in seen["body"]

    @pytest.mark.asyncio
    async def test_final_assistant_message_fails_before_request(self, settings):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=gemini_reply("unused"))

        provider = make_provider(settings, handler)
        with pytest.raises(ProviderRequestError, match="final message must be user text"):
            await provider.chat_completion(
                ChatRequest(
                    messages=(msg("system", "s"), msg("user", "A"), msg("user", "B"), msg("assistant", "C"))
                )
            )
        assert calls == []

    @pytest.mark.asyncio
    async def test_http_error_carries_backend_message(self, settings):
        def handler(request):
            return httpx.Response(400, json={"error": {"code": 400, "message": "API key not valid."}})

        provider = make_provider(settings, handler)
        with pytest.raises(ProviderRequestError) as exc_info:
            await provider.chat_completion(ChatRequest(messages=(msg("user", "Hello"),)))

        assert str(exc_info.value) == "Gemini API request failed: API key not valid."

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = make_provider(settings, handler)
        with pytest.raises(ProviderRequestError, match="connection refused"):
            await provider.chat_completion(ChatRequest(messages=(msg("user", "Hello"),)))

    @pytest.mark.asyncio
    async def test_missing_candidates_is_malformed(self, settings):
        provider = make_provider(settings, lambda request: httpx.Response(200, json={"promptFeedback": {}}))

        with pytest.raises(ProviderRequestError, match="no candidates"):
            await provider.chat_completion(ChatRequest(messages=(msg("user", "Hello"),)))

    @pytest.mark.asyncio
    async def test_stream_accumulates_and_reports_usage(self, settings):
        events = [
            {"candidates": [{"content": {"parts": [{"text": "Once"}]}}]},
            {"candidates": [{"content": {"parts": [{"text": " upon"}]}}]},
            {
                "candidates": [{"content": {"parts": [{"text": " a time."}]}, "finishReason": "STOP"}],
                "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 4, "totalTokenCount": 7},
            },
        ]
        sse = "".join(f"data: {json.dumps(event)}\r\n\r\n" for event in events)
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, text=sse, headers={"content-type": "text/event-stream"})

        provider = make_provider(settings, handler)
        chunks = [
            chunk
            async for chunk in provider.stream_chat_completion(
                ChatRequest(messages=(msg("user", "Tell me a story"),))
            )
        ]

        assert [c.content for c in chunks] == [
            "Once",
            "Once upon",
            "Once upon a time.",
            "Once upon a time.",
        ]
        assert chunks[-1].usage.total_tokens == 7
        assert all(c.usage is None for c in chunks[:-1])
        assert seen["url"].path.endswith(":streamGenerateContent")
        assert seen["url"].params["alt"] == "sse"

    @pytest.mark.asyncio
    async def test_stream_http_error(self, settings):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Resource exhausted."}})

        provider = make_provider(settings, handler)
        with pytest.raises(ProviderRequestError, match="Resource exhausted"):
            async for _ in provider.stream_chat_completion(ChatRequest(messages=(msg("user", "Hi"),))):
                pass

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            [1],
            "text",
            {"candidates": ["x"]},
            {"candidates": {"first": {}}},
            {"candidates": [{"content": {"parts": ["hi"]}}]},
            {"candidates": [{"content": {"parts": [{"text": 5}]}}]},
            {"candidates": [{"content": {"parts": [{"text": "hi"}]}}], "usageMetadata": [3]},
        ],
    )
    async def test_wrongly_shaped_payload_is_provider_error(self, settings, payload):
        provider = make_provider(settings, lambda request: httpx.Response(200, json=payload))

        with pytest.raises(ProviderRequestError, match="malformed response payload"):
            await provider.chat_completion(ChatRequest(messages=(msg("user", "Hello"),)))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", ["[1]", '{"candidates": ["x"]}', '{"candidates": [{"content": {"parts": ["hi"]}}]}'])
    async def test_stream_wrongly_shaped_chunk_is_provider_error(self, settings, event):
        sse = f'data: {json.dumps(gemini_reply("Once"))}\r\n\r\ndata: {event}\r\n\r\n'
        provider = make_provider(
            settings,
            lambda request: httpx.Response(200, text=sse, headers={"content-type": "text/event-stream"}),
        )

        chunks = []
        with pytest.raises(ProviderRequestError, match="malformed response payload"):
            async for chunk in provider.stream_chat_completion(ChatRequest(messages=(msg("user", "Hi"),))):
                chunks.append(chunk.content)

        assert chunks == ["Once"]

    @pytest.mark.asyncio
    async def test_aclose_closes_http_client(self, settings):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        provider = GeminiProvider(settings, client=client)

        await provider.aclose()

        assert client.is_closed
