"""
Conversational Weather App.

Ask for the weather by city, then ask follow-up questions about it.
"""
import logging
from typing import Optional

from ..cli import ask_question, run_app
from ..llm import LLMProvider
from ..weather import TurnOutcome, TurnResult, WeatherClient, WeatherService

logger = logging.getLogger(__name__)


def render_turn(result: TurnResult) -> str:
    """Format a turn result for the console."""
    if result.outcome == TurnOutcome.WEATHER:
        return f"\n☀️ {result.summary}\n"
    if result.text:
        return f"\n🤖 {result.text}\n"
    return "\n🤖 Sorry, something went wrong.\n"


async def conversation(provider: LLMProvider) -> None:
    print("--- Conversational Weather App ---")
    print("Ask for weather by city, or type '/quit' to exit.")

    weather_client = WeatherClient()
    service = WeatherService(provider, weather_client)

    context: Optional[str] = None
    user_input = "Hello"  # opening turn so the assistant greets first

    try:
        while True:
            result = await service.handle_turn(user_input, context)
            print(render_turn(result))
            context = result.context

            user_input = await ask_question("> ")
            while not user_input.strip():
                print("Please enter a city or ask a question.")
                user_input = await ask_question("> ")

            if user_input.strip().lower() == "/quit":
                break
    finally:
        await weather_client.aclose()

    print("\nExiting Weather App. Goodbye!")


def main() -> int:
    return run_app(conversation, "Conversational weather assistant")


if __name__ == "__main__":
    raise SystemExit(main())
