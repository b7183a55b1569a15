"""Configuration management for InboxRank.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the INBOX_RANK_ prefix (e.g., INBOX_RANK_OLLAMA_HOST).
    """

    model_config = SettingsConfigDict(
        env_prefix="INBOX_RANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.1:8b",
        description="Ollama model used for categorization",
    )
    inference_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for a single categorization request in seconds",
    )

    # Batch Configuration
    batch_size: int = Field(
        default=5,
        ge=1,
        description="Number of items categorized concurrently per batch",
    )
    batch_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Pause between batches in milliseconds",
    )

    # Prompt Configuration
    body_preview_chars: int = Field(
        default=500,
        ge=0,
        description="Maximum number of body characters included in the prompt",
    )
    thread_context_limit: int = Field(
        default=3,
        ge=0,
        description="Number of most recent thread messages included in the prompt",
    )

    # Store Configuration
    store_db_path: Path = Field(
        default=Path("inbox_rank.sqlite3"),
        description="Path to the local SQLite database holding items and triage results",
    )
    default_limit: int = Field(
        default=10,
        ge=1,
        description="Default number of untriaged items processed per run",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
