"""
Tiny Tale Tuner.

Write a story together with the model, one short sentence at a time.
Replies are streamed to the terminal as they arrive.
"""
import logging
import sys
from typing import Callable

from ..cli import ask_question, run_app
from ..errors import ProviderRequestError
from ..llm import ChatMessage, ChatRequest, LLMProvider

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a collaborative storyteller. Continue the story with one short sentence, "
    "strictly under 20 tokens. Do not add any preamble like \"Okay, here's the next "
    "sentence:\". Just provide the sentence."
)
DEFAULT_TEMPERATURE = 0.7
MAX_SENTENCE_TOKENS = 20
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


class TaleSession:
    """Story transcript and sampling temperature for one session."""

    def __init__(
        self,
        provider: LLMProvider,
        write: Callable[[str], None] = _write_stdout,
    ):
        self.provider = provider
        self.temperature = DEFAULT_TEMPERATURE
        self.messages: list[ChatMessage] = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
        self._write = write

    async def handle_input(self, raw_input: str) -> bool:
        """Handle one line of input. Returns False when the session should end."""
        text = raw_input.strip()

        if text.lower() == "/quit":
            return False

        if text.startswith("/temp"):
            self._set_temperature(text)
            return True

        if text:
            self.messages.append(ChatMessage(role="user", content=text))
            await self.continue_story()
        else:
            self._write("Please enter a sentence or a command.\n")
        return True

    def _set_temperature(self, command: str) -> None:
        parts = command.split(" ")
        if len(parts) != 2:
            self._write("Usage: /temp [0.0-2.0]\n")
            return

        try:
            value = float(parts[1])
        except ValueError:
            value = None

        if value is None or not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
            self._write("Invalid temperature value. Use a number between 0.0 and 2.0.\n")
            return

        self.temperature = value
        self._write(f"Temperature set to {self.temperature}\n")

    async def continue_story(self) -> None:
        """Stream the model's next sentence and add it to the transcript."""
        request = ChatRequest(
            messages=tuple(self.messages),
            model=self.provider.default_model or None,
            temperature=self.temperature,
            max_tokens=MAX_SENTENCE_TOKENS,
        )

        self._write("AI: ")
        printed = ""
        try:
            async for chunk in self.provider.stream_chat_completion(request):
                self._write(chunk.content[len(printed):])
                printed = chunk.content
            self._write("\n")
        except ProviderRequestError as e:
            logger.error("Error calling provider: %s", e)
            self._write(f"\nError calling {self.provider.provider_name} API: {e}\n")
            return

        sentence = printed.strip()
        if sentence:
            self.messages.append(ChatMessage(role="assistant", content=sentence))
        else:
            logger.warning("AI generated an empty response")
            self._write("[Warning: AI generated an empty response]\n")


async def tell_tale(provider: LLMProvider) -> None:
    print("--- Tiny Tale Tuner ---")
    print("Let's write a story together, one sentence at a time!")
    print(f"The AI's sentences are capped at {MAX_SENTENCE_TOKENS} tokens.")
    print("Commands: /temp [0.0-2.0] to change creativity, /quit to exit.\n")

    session = TaleSession(provider)
    keep_going = True
    while keep_going:
        user_input = await ask_question("You: ")
        keep_going = await session.handle_input(user_input)

    print("\nStory ended. Goodbye!")


def main() -> int:
    return run_app(tell_tale, "Write a story together, one sentence at a time")


if __name__ == "__main__":
    raise SystemExit(main())
