"""
Conversational weather logic.

Each user turn goes through one LLM call. The reply (and, on the first
turn, a capitalization heuristic over the user's own text) decides whether
to look up weather for a city, ask which city, answer from the weather
already fetched, or just pass the reply on.

The only state between turns is the context: the summary of the last
weather fetched, or None. Every TurnResult carries the context to use on
the next turn.
"""
import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ConfigurationError
from ..llm import ChatMessage, ChatRequest, LLMProvider
from .client import WeatherClient, interpret_weather_code

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a friendly weather assistant.
- If the user provides a city name, acknowledge it ONLY with the exact phrase: "Okay, fetching weather for [City Name]...". Do not add any other text or questions in this specific response.
- If the user asks a question AND weather context is provided below, answer the question based ONLY on that context.
- If the user asks a question but NO weather context is provided, or asks something unrelated to the provided context, politely state you need a city first or can only answer about the current weather context.
- If no city is mentioned and no context is provided, ask the user "Which city would you like the weather for?"."""

FETCH_TRIGGER = "Okay, fetching weather for"
FETCH_TRIGGER_PATTERN = re.compile(r"Okay, fetching weather for (.*?)\.\.\.")
CLARIFYING_PHRASE = "Which city"
MISSING_MODEL = "default-model-error"
ERROR_TEXT = "An error occurred while processing your request."

# Sentence starters that don't count as a city when they open the input
COMMON_STARTS = frozenset({"what", "what's", "is", "get", "fetch", "show", "me"})


class TurnOutcome(str, Enum):
    WEATHER = "weather"
    QUESTION = "question"
    ANSWER = "answer"
    INFO = "info"
    ERROR = "error"


@dataclass
class TurnResult:
    """Outcome of one conversation turn."""
    outcome: TurnOutcome
    text: Optional[str] = None  # question/answer/info/error
    summary: Optional[str] = None  # weather
    context: Optional[str] = None  # context for the next turn


def extract_city_name(user_input: str) -> Optional[str]:
    """
    Guess a city name from capitalized words.

    Collects runs of consecutive words starting with an uppercase letter,
    skipping a common sentence starter in first position, and returns the
    longest run. Basic heuristic: punctuation stays attached to the words.
    """
    words = user_input.split()
    candidates: list[str] = []

    i = 0
    while i < len(words):
        word = words[i]
        if word[0].isascii() and word[0].isupper() and (i > 0 or word.lower() not in COMMON_STARTS):
            j = i + 1
            while j < len(words) and words[j][0].isascii() and words[j][0].isupper():
                j += 1
            candidates.append(" ".join(words[i:j]))
            i = j
        else:
            i += 1

    if not candidates:
        return None
    return max(candidates, key=len)


def format_summary(place: str, description: str, temperature: float, wind_speed: float) -> str:
    return (
        f"The current weather in {place} is {description.lower()} "
        f"with a temperature of {temperature}°C and wind speed of {wind_speed} km/h."
    )


class WeatherService:
    """Handles weather conversation turns for a provider and weather client."""

    def __init__(self, provider: LLMProvider, weather_client: WeatherClient):
        self._provider = provider
        self._weather = weather_client

    def _build_request(self, user_input: str, context: Optional[str]) -> ChatRequest:
        messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
        if context:
            messages.append(ChatMessage(role="system", content=f"CONTEXT: {context}"))
        messages.append(ChatMessage(role="user", content=user_input))

        info = self._provider.provider_info()
        model = info.supported_models[0] if info.supported_models else MISSING_MODEL
        if model == MISSING_MODEL:
            raise ConfigurationError(f"Provider {info.name} doesn't list any supported models")

        return ChatRequest(
            messages=tuple(messages),
            model=model,
            temperature=0.5,
        )

    async def handle_turn(self, user_input: str, context: Optional[str]) -> TurnResult:
        """Process one user turn given the current weather context."""
        try:
            return await self._handle_turn(user_input, context)
        except Exception as e:
            logger.error("Error during conversation turn: %s", e, exc_info=True)
            return TurnResult(outcome=TurnOutcome.ERROR, text=ERROR_TEXT)

    async def _handle_turn(self, user_input: str, context: Optional[str]) -> TurnResult:
        request = self._build_request(user_input, context)

        logger.debug("AI processing turn with model %s", request.model)
        response = await self._provider.chat_completion(request)
        reply = response.content.strip()
        logger.debug("AI response: %s", reply)

        fetch_trigger = reply.startswith(FETCH_TRIGGER)
        potential_city = extract_city_name(user_input)

        city: Optional[str] = None
        if fetch_trigger:
            match = FETCH_TRIGGER_PATTERN.search(reply)
            if match and match.group(1):
                city = match.group(1)
        elif potential_city and not context:
            city = potential_city
            logger.info("User likely provided new city: %s", city)

        if city:
            return await self._fetch_weather(city)

        if CLARIFYING_PHRASE in reply:
            return TurnResult(outcome=TurnOutcome.QUESTION, text=reply)
        if context and not fetch_trigger:
            return TurnResult(outcome=TurnOutcome.ANSWER, text=reply, context=context)
        return TurnResult(outcome=TurnOutcome.INFO, text=reply)

    async def _fetch_weather(self, city: str) -> TurnResult:
        logger.info("Fetching weather for: %s", city)

        place = await self._weather.geocode(city)
        if place is None:
            return TurnResult(
                outcome=TurnOutcome.INFO,
                text=(
                    f'Sorry, I couldn\'t find coordinates for "{city}". '
                    "Please check the spelling or try again."
                ),
            )

        current = await self._weather.current_weather(place.latitude, place.longitude)
        if current is None:
            return TurnResult(
                outcome=TurnOutcome.INFO,
                text=f"Sorry, I couldn't fetch the current weather data for {place.name}.",
            )

        summary = format_summary(
            place.name,
            interpret_weather_code(current.weather_code),
            current.temperature,
            current.wind_speed,
        )
        return TurnResult(outcome=TurnOutcome.WEATHER, summary=summary, context=summary)
