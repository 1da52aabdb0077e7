"""
Flashcard Forge.

Generates a small set of study flashcards on a topic as structured JSON.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

from ..cli import ask_question, run_app
from ..errors import MiniAppError
from ..llm import ChatMessage, ChatRequest, LLMProvider

logger = logging.getLogger(__name__)


Difficulty = Literal["beginner", "intermediate", "advanced"]
Style = Literal["formal", "casual"]

DIFFICULTY_CHOICES: dict[str, Difficulty] = {
    "1": "beginner",
    "2": "intermediate",
    "3": "advanced",
}
MIN_CARDS = 1
MAX_CARDS = 5


class FlashcardParseError(MiniAppError):
    """The model's reply wasn't the flashcard JSON we asked for."""


class Flashcard(BaseModel):
    id: str
    question: str
    answer: str


class FlashcardMetadata(BaseModel):
    difficulty_level: str
    total_cards: int
    topic: str


class FlashcardPayload(BaseModel):
    """JSON object the model is asked to return."""
    flashcards: list[Flashcard]
    metadata: FlashcardMetadata


@dataclass
class Performance:
    latency_ms: int
    model: str
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass
class FlashcardSet:
    flashcards: list[Flashcard]
    metadata: FlashcardMetadata
    performance: Performance


def parse_difficulty(raw: str) -> Difficulty:
    return DIFFICULTY_CHOICES.get(raw.strip(), "intermediate")


def parse_card_count(raw: str) -> int:
    """Clamp the requested card count to 1-5; anything unparseable means 1."""
    try:
        count = int(float(raw.strip()))
    except (ValueError, OverflowError):
        count = 0
    return min(max(count or MIN_CARDS, MIN_CARDS), MAX_CARDS)


def parse_style(raw: str) -> Style:
    return "casual" if raw.strip().lower() == "casual" else "formal"


def build_system_prompt(topic: str, num_cards: int) -> str:
    return f"""You are a professional educator and flashcard creator. Create clear, concise questions with accurate and educational answers. Maintain consistent difficulty level.

IMPORTANT: Respond ONLY with a valid JSON object in this exact format. Ensure all strings within the JSON are properly escaped (e.g., use \\" for quotes, \\n for newlines).
{{
  "flashcards": [
    {{
      "id": "1",
      "question": "Clear, concise question",
      "answer": "Educational, accurate answer"
    }}
  ],
  "metadata": {{
    "difficulty_level": "beginner|intermediate|advanced",
    "total_cards": {num_cards},
    "topic": "{topic}"
  }}
}}"""


async def generate_flashcards(
    provider: LLMProvider,
    topic: str,
    difficulty: Difficulty,
    num_cards: int,
    style: Style,
) -> FlashcardSet:
    """
    Ask the provider for flashcards and validate the JSON it returns.

    Raises:
        ProviderRequestError: the provider call failed
        FlashcardParseError: the reply was empty or not valid flashcard JSON
    """
    request = ChatRequest(
        messages=(
            ChatMessage(role="system", content=build_system_prompt(topic, num_cards)),
            ChatMessage(
                role="user",
                content=(
                    f"Create {num_cards} flashcards about {topic}. "
                    f"Difficulty level: {difficulty}, Style: {style}"
                ),
            ),
        ),
        model=provider.default_model or None,
        temperature=0.3,
        top_p=0.8,
        max_tokens=400,
        json_mode=True,
        seed=123,
    )

    response = await provider.chat_completion(request)
    if not response.content:
        raise FlashcardParseError("Received empty response content from the provider.")

    try:
        payload = FlashcardPayload.model_validate_json(response.content)
    except ValidationError as e:
        logger.error("Failed to parse flashcard JSON. Raw response: %s", response.content)
        raise FlashcardParseError(f"JSON Parsing Error: {e}") from e

    usage = response.usage
    return FlashcardSet(
        flashcards=payload.flashcards,
        metadata=payload.metadata,
        performance=Performance(
            latency_ms=response.latency_ms,
            model=response.model,
            input_tokens=usage.prompt_tokens if usage else None,
            output_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None,
        ),
    )


def render_flashcards(result: FlashcardSet, style: Style) -> str:
    def or_na(value: Optional[int]) -> str:
        return "N/A" if value is None else str(value)

    lines = [
        f"Topic: {result.metadata.topic}",
        f"Cards Generated: {len(result.flashcards)}",
        f"Difficulty: {result.metadata.difficulty_level}",
        f"Style: {style}",
        "",
    ]
    for i, card in enumerate(result.flashcards, start=1):
        lines.append(f"{i}. Q: {card.question}")
        lines.append(f"   A: {card.answer}")
        lines.append("")

    perf = result.performance
    lines.extend([
        "--- Performance ---",
        f"- Latency: {perf.latency_ms}ms",
        f"- Input tokens: {or_na(perf.input_tokens)}",
        f"- Output tokens: {or_na(perf.output_tokens)}",
        f"- Total tokens: {or_na(perf.total_tokens)}",
        f"- Model: {perf.model}",
        "-------------------",
    ])
    return "\n".join(lines)


async def forge(provider: LLMProvider) -> None:
    print("--- Flashcard Forge ---")

    try:
        topic = await ask_question("Enter topic: ")
        difficulty = parse_difficulty(
            await ask_question("Difficulty (1=Beginner, 2=Intermediate, 3=Advanced): ")
        )
        num_cards = parse_card_count(await ask_question("Number of cards (1-5): "))
        style = parse_style(await ask_question("Style (formal/casual): "))

        print("\nGenerating flashcards...\n")
        result = await generate_flashcards(provider, topic, difficulty, num_cards, style)
        print(render_flashcards(result, style))
    except MiniAppError as e:
        print(f"Error: {e}")


def main() -> int:
    return run_app(forge, "Generate study flashcards on a topic")


if __name__ == "__main__":
    raise SystemExit(main())
