"""Configuration management for the AIOS backend."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # LLM providers (optional - features degrade to heuristics without them)
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")

    # Environment
    AIOS_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Key-value storage
    KV_TABLE: str = Field(default="kv_store", description="Supabase table backing the KV store")

    # Capture classification
    CAPTURE_MODEL: str = Field(default="gpt-3.5-turbo", description="Model for capture analysis")
    CAPTURE_MAX_TOKENS: int = Field(default=400, description="Max tokens for capture analysis")
    CAPTURE_TEMPERATURE: float = Field(default=0.3, description="Temperature for capture analysis")
    CAPTURE_LIST_LIMIT: int = Field(default=50, description="Default page size for capture listing")

    # Assistant chat
    ASSISTANT_MODEL: str = Field(
        default="claude-sonnet-4-5-20250929", description="Model for assistant replies"
    )
    ASSISTANT_MAX_TOKENS: int = Field(default=500, description="Max tokens for assistant replies")
    ASSISTANT_TEMPERATURE: float = Field(default=0.7, description="Temperature for assistant replies")
    CONVERSATION_HISTORY_LIMIT: int = Field(
        default=20, description="Messages kept in the stored conversation"
    )

    # Shared LLM transport
    LLM_TIMEOUT_SECONDS: float = Field(default=60.0, description="Per-request LLM timeout")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
