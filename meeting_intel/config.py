from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings.

    Values may be provided via environment variables (``NOTES_`` prefix).
    Provider keys (ANTHROPIC_API_KEY, OPENAI_API_KEY, ...) are read at call
    time by the llm service so they can be switched at runtime.
    """

    model_config = SettingsConfigDict(env_prefix="NOTES_", case_sensitive=False)

    # HTTP
    cors_allow_origins: str = Field("*", description="Comma-separated origins")

    # Input limits
    min_input_chars: int = 10
    max_input_chars: int = 1000

    # History
    history_limit: int = Field(10, description="Number of sessions kept in the store")
    store_backend: str = Field("sqlite", description="sqlite|supabase")
    db_path: str = Field("", description="SQLite file; defaults to meeting_intel/notes.db")

    # Summarization
    demo_mode: bool = Field(False, description="Skip the provider and use heuristics only")
    request_timeout_s: int = 40


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
