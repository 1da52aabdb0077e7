"""
JSON Recipe Creator.

Asks for a recipe as strict JSON and retries a few times when the model
returns something that doesn't match the recipe schema.
"""
import asyncio
import json
import logging
from typing import Optional

from pydantic import BaseModel, StrictStr, ValidationError

from ..cli import ask_question, run_app
from ..errors import ProviderRequestError
from ..llm import ChatMessage, ChatRequest, LLMProvider

logger = logging.getLogger(__name__)


MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0

RECIPE_SCHEMA_INFO = """
Required JSON format:
{
  "title": "string (Recipe title)",
  "ingredients": ["string (Ingredient description)", "..."],
  "steps": ["string (Step description)", "..."],
  "calories": "number (Estimated calories per serving)"
}
"""


class Recipe(BaseModel):
    title: StrictStr
    ingredients: list[StrictStr]
    steps: list[StrictStr]
    calories: float


def build_request(dish_name: str, model: Optional[str]) -> ChatRequest:
    return ChatRequest(
        messages=(
            ChatMessage(
                role="system",
                content=(
                    "You are a recipe generator. Respond ONLY with a valid JSON object "
                    f"matching this structure: {RECIPE_SCHEMA_INFO}. Do not include any "
                    "introductory text, markdown formatting, or explanations outside "
                    "the JSON structure."
                ),
            ),
            ChatMessage(role="user", content=f"Generate a recipe for {dish_name}."),
        ),
        model=model,
        json_mode=True,
        temperature=0.5,
    )


def parse_recipe(content: str) -> Recipe:
    """
    Validate the model's reply against the recipe schema.

    Raises:
        ValueError: not JSON, or JSON of the wrong shape
    """
    data = json.loads(content)
    # bool is a number to pydantic; the schema wants a real number
    if isinstance(data, dict) and isinstance(data.get("calories"), (bool, str)):
        raise ValueError("calories must be a number")
    return Recipe.model_validate(data)


async def get_recipe(
    provider: LLMProvider,
    dish_name: str,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> Optional[Recipe]:
    """
    Generate a recipe, retrying on empty, unparseable or invalid replies.

    Returns None once every attempt has failed.
    """
    request = build_request(dish_name, provider.default_model or None)

    for attempt in range(1, max_retries + 1):
        logger.info("Attempting API call (%d/%d)...", attempt, max_retries)

        try:
            response = await provider.chat_completion(request)
        except ProviderRequestError as e:
            logger.error("Attempt %d: API call failed. Error: %s", attempt, e)
        else:
            if not response.content:
                logger.error("Attempt %d: Received empty response content.", attempt)
            else:
                try:
                    recipe = parse_recipe(response.content)
                except json.JSONDecodeError as e:
                    logger.error("Attempt %d: Failed to parse JSON. Error: %s", attempt, e)
                except (ValidationError, ValueError) as e:
                    logger.error("Attempt %d: JSON structure validation failed: %s", attempt, e)
                else:
                    logger.info("Attempt %d: Successfully generated and validated JSON.", attempt)
                    return recipe

        if attempt < max_retries:
            await asyncio.sleep(retry_delay)

    logger.error("Max retries reached. Failed to get valid JSON.")
    return None


async def create_recipe(provider: LLMProvider) -> None:
    print("--- JSON Recipe Creator ---")

    dish_name = await ask_question("What dish would you like a recipe for? ")
    if not dish_name.strip():
        print("No dish name provided. Exiting.")
        return

    print(f'\nGenerating recipe for "{dish_name}"...')
    recipe = await get_recipe(provider, dish_name)

    if recipe:
        print("\n--- Generated Recipe JSON ---")
        print(recipe.model_dump_json(indent=2))
        print("---------------------------\n")
    else:
        print("\nFailed to generate a valid recipe JSON after multiple attempts.")


def main() -> int:
    return run_app(create_recipe, "Generate a recipe as validated JSON")


if __name__ == "__main__":
    raise SystemExit(main())
