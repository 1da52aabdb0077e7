"""Tests for Tiny Tale Tuner sessions."""

from __future__ import annotations

import pytest

from miniapps.apps.tale_tuner import DEFAULT_TEMPERATURE, TaleSession
from miniapps.errors import ProviderRequestError

from .conftest import FakeProvider


def make_session(replies=None):
    output: list[str] = []
    session = TaleSession(FakeProvider(replies or []), write=output.append)
    return session, output


class TestTaleSession:
    """Tests for TaleSession.handle_input."""

    @pytest.mark.asyncio
    async def test_quit(self):
        session, _ = make_session()

        assert await session.handle_input("/quit") is False
        assert await session.handle_input("  /QUIT ") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command, expected", [("/temp 1.2", 1.2), ("/temp 0", 0.0), ("/temp 2.0", 2.0)])
    async def test_set_temperature(self, command, expected):
        session, output = make_session()

        assert await session.handle_input(command) is True
        assert session.temperature == expected
        assert output[-1] == f"Temperature set to {expected}\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["/temp 2.5", "/temp -1", "/temp hot"])
    async def test_invalid_temperature(self, command):
        session, output = make_session()

        await session.handle_input(command)

        assert session.temperature == DEFAULT_TEMPERATURE
        assert output[-1].startswith("Invalid temperature value")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["/temp", "/temp 1 2"])
    async def test_temperature_usage(self, command):
        session, output = make_session()

        await session.handle_input(command)

        assert output[-1] == "Usage: /temp [0.0-2.0]\n"

    @pytest.mark.asyncio
    async def test_empty_input(self):
        session, output = make_session()

        assert await session.handle_input("   ") is True
        assert output == ["Please enter a sentence or a command.\n"]
        assert len(session.messages) == 1

    @pytest.mark.asyncio
    async def test_story_turn_streams_and_records(self):
        session, output = make_session(["The dragon yawned loudly."])

        await session.handle_input("Once upon a time there was a dragon.")

        assert "".join(output) == "AI: The dragon yawned loudly.\n"
        assert [(m.role, m.content) for m in session.messages[1:]] == [
            ("user", "Once upon a time there was a dragon."),
            ("assistant", "The dragon yawned loudly."),
        ]
        request = session.provider.requests[0]
        assert request.max_tokens == 20
        assert request.temperature == DEFAULT_TEMPERATURE
        assert request.messages[0].role == "system"

    @pytest.mark.asyncio
    async def test_temperature_used_for_next_turn(self):
        session, _ = make_session(["It flew away."])

        await session.handle_input("/temp 1.5")
        await session.handle_input("The dragon woke up.")

        assert session.provider.requests[0].temperature == 1.5

    @pytest.mark.asyncio
    async def test_empty_reply_not_recorded(self):
        session, output = make_session(["   "])

        await session.handle_input("Something happened.")

        assert session.messages[-1].role == "user"
        assert output[-1] == "[Warning: AI generated an empty response]\n"

    @pytest.mark.asyncio
    async def test_provider_error_keeps_loop_going(self):
        session, output = make_session([ProviderRequestError("Fake", "rate limited")])

        assert await session.handle_input("A knight appeared.") is True
        assert "rate limited" in output[-1]
        assert session.messages[-1].role == "user"
