"""
Mood-Morph Poet.

Rewrites a few words in a randomly chosen mood and shows how likely each
generated token was, with its top alternatives.
"""
import logging
import math
import random
from typing import Optional

from ..cli import get_multiline_input, run_app
from ..errors import ProviderRequestError
from ..llm import ChatMessage, ChatRequest, ChatResponse, LLMProvider

logger = logging.getLogger(__name__)


MOODS = [
    "happy",
    "sad",
    "angry",
    "excited",
    "mysterious",
    "formal",
    "casual",
    "robotic",
]
TOP_K = 5  # alternative tokens shown per position
MAX_WORDS = 5


def count_words(text: str) -> int:
    return len(text.split())


async def rewrite_text(provider: LLMProvider, original_text: str, mood: str) -> Optional[ChatResponse]:
    """Rewrite the text in the given mood. Returns None if the call fails."""
    request = ChatRequest(
        messages=(
            ChatMessage(
                role="system",
                content=(
                    "You are a Mood-Morph Poet. Rewrite the user's text precisely in the "
                    "requested mood. Do not add any extra commentary."
                ),
            ),
            ChatMessage(
                role="user",
                content=(
                    f"Rewrite the following text in a {mood} tone "
                    f"(max {MAX_WORDS} words input):\n\n{original_text}"
                ),
            ),
        ),
        model=provider.default_model or None,
        top_p=0.9,
        logprobs=True,
        top_logprobs=TOP_K,
        max_tokens=50,
        temperature=0.7,
    )

    try:
        return await provider.chat_completion(request)
    except ProviderRequestError as e:
        logger.error("Error calling provider: %s", e)
        return None


def render_result(response: ChatResponse, mood: str) -> str:
    lines = [
        f"\n--- Rewritten Text ({mood}) ---",
        response.content or "(No text generated)",
        "-------------------------\n",
    ]

    if not response.logprobs:
        lines.append("(Logprobs were not available in the response)")
        return "\n".join(lines)

    lines.append(f"--- Token Logprobs (Top {TOP_K} Alternatives) ---")
    for index, info in enumerate(response.logprobs, start=1):
        lines.append(f'Token {index}: "{info.token}" (logprob: {info.logprob:.4f})')
        if info.top_logprobs:
            for alt_index, alt in enumerate(info.top_logprobs, start=1):
                probability = math.exp(alt.logprob) * 100
                chosen = " (Chosen)" if alt.token == info.token else ""
                lines.append(f'  {alt_index}. "{alt.token}" ({probability:.2f}%){chosen}')
        else:
            lines.append("  (No alternative logprobs available for this token)")
        lines.append("")
    lines.append("-------------------------------------------\n")
    return "\n".join(lines)


async def morph(provider: LLMProvider) -> None:
    print("--- Mood-Morph Poet ---")

    while True:
        original_text = await get_multiline_input(f"Enter text (max {MAX_WORDS} words) to rewrite")
        if not original_text.strip():
            print("No text provided. Exiting.")
            return
        if count_words(original_text) <= MAX_WORDS:
            break
        print(f"\nInput too long. Please use {MAX_WORDS} words or less. Try again.\n")

    mood = random.choice(MOODS)
    print(f"\nChosen mood: {mood}")
    print("Rewriting text...")

    response = await rewrite_text(provider, original_text, mood)
    if response:
        print(render_result(response, mood))
    else:
        print("Failed to get rewrite from API.")


def main() -> int:
    return run_app(morph, "Rewrite a few words in a random mood")


if __name__ == "__main__":
    raise SystemExit(main())
