"""
Mini-apps configuration.

Everything comes from environment variables, optionally loaded from a .env
file in the working directory or its parent.
"""
from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> str:
    """Find .env file - check local dir, then project root."""
    local_env = Path(".env")
    root_env = Path("../.env")

    if local_env.exists():
        return str(local_env)
    elif root_env.exists():
        return str(root_env)
    return ".env"  # default


class Settings(BaseSettings):
    """Settings shared by all mini-apps."""

    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # DeepSeek (OpenAI-compatible endpoint)
    deepseek_api_key: str = ""
    deepseek_base_url: str = ""
    deepseek_model: str = "deepseek-chat"

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # HTTP
    llm_timeout: float = 120.0  # LLM calls can be slow
    weather_timeout: float = 15.0

    # Open-Meteo
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"

    # Logging
    log_level: str = "warning"
    log_path: str = ""  # e.g. logs/miniapps.log


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
