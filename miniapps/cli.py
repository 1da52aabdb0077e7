"""
Terminal helpers shared by the mini-apps.

The apps are single-threaded: terminal reads block the event loop on
purpose, so Ctrl+C at a prompt raises KeyboardInterrupt straight out of
input() instead of waiting on a reader thread.
"""
import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional, Sequence

from .config import get_settings
from .errors import ConfigurationError
from .llm import LLMProvider, create_provider
from .llm.factory import PROVIDERS
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


async def ask_question(prompt: str) -> str:
    """Read one line from the terminal."""
    return input(prompt)


async def get_multiline_input(prompt: str) -> str:
    """Read lines until a line containing only EOF (any case)."""
    print(f"{prompt} (Type 'EOF' on a new line when done):")
    lines: list[str] = []
    while True:
        line = input()
        if line.strip().upper() == "EOF":
            break
        lines.append(line)
    return "\n".join(lines)


def build_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--provider",
        default=None,
        help=f"LLM provider to use ({', '.join(PROVIDERS)}; default: openai)",
    )
    return parser


def select_provider(provider_name: Optional[str]) -> LLMProvider:
    """Build the provider named on the command line."""
    print(f"Using AI Provider: {provider_name or 'openai'}")
    return create_provider(provider_name, get_settings())


def _finish(loop: asyncio.AbstractEventLoop, provider: LLMProvider) -> None:
    """Cancel leftover tasks, close the provider and the loop."""
    try:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.run_until_complete(provider.aclose())
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        loop.close()


def run_app(
    app: Callable[[LLMProvider], Awaitable[None]],
    description: str,
    argv: Optional[Sequence[str]] = None,
) -> int:
    """
    Common entry point: parse --provider, set up logging, run the app.

    The loop is driven with run_until_complete rather than asyncio.run so
    the default SIGINT handler stays in place and Ctrl+C interrupts a
    blocking prompt immediately.

    Returns the process exit code: 0 on a normal or interrupted exit,
    1 when the provider can't be configured.
    """
    args = build_parser(description).parse_args(argv)
    setup_logging()

    try:
        provider = select_provider(args.provider)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        print(f"CRITICAL ERROR: {e}", file=sys.stderr)
        return 1

    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(app(provider))
    except (KeyboardInterrupt, EOFError):
        print("\nCaught interrupt signal (Ctrl+C). Exiting.")
    finally:
        _finish(loop, provider)
    return 0
