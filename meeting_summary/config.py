"""Settings loaded from the environment and an optional .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic."""

    openai_api_key: str = ""

    # Models
    chunk_model: str = "gpt-3.5-turbo"
    aggregate_model: str = "gpt-4"
    title_model: str = "gpt-3.5-turbo"
    transcribe_model: str = "whisper-1"

    # Summarization
    max_chars: int = 2500
    max_workers: int = 8
    temperature: float = 0.7

    log_level: str = "WARNING"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
