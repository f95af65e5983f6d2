"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class MessageTone(str):
    """Tones a generated reply can be written in."""
    FORMAL = "formal"
    CASUAL = "casual"
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"


class LLMProvider(str):
    """Completion providers the service can talk to."""
    OPENAI = "openai"
    ZAI = "zai"
    MOCK = "mock"


VALID_TONES = [
    MessageTone.FORMAL, MessageTone.CASUAL,
    MessageTone.FRIENDLY, MessageTone.PROFESSIONAL
]
VALID_PROVIDERS = [LLMProvider.OPENAI, LLMProvider.ZAI, LLMProvider.MOCK]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="response-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/support",
        description="PostgreSQL connection URL (async) holding kb_articles and ticket_comments"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Completion Providers ==========
    llm_provider: str = Field(
        default=LLMProvider.OPENAI,
        description="Completion provider: openai, zai or mock"
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key"
    )
    zai_api_key: Optional[str] = Field(
        default=None,
        description="Z.AI API key"
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )

    # ========== Generation Defaults ==========
    llm_model: str = Field(
        default="gpt-4-turbo-preview",
        description="Model used for draft reply generation"
    )
    llm_temperature: float = Field(
        default=0.7,
        description="Default temperature for LLM",
        ge=0.0,
        le=2.0
    )
    llm_max_tokens: int = Field(
        default=500,
        description="Default max tokens for LLM generation",
        ge=1,
        le=8000
    )
    max_context_length: int = Field(
        default=4000,
        description="Upper bound, in characters, for the serialized article block",
        ge=200
    )
    include_knowledge_base: bool = Field(
        default=True,
        description="Retrieve knowledge base articles for grounding"
    )
    include_ticket_history: bool = Field(
        default=True,
        description="Fetch the ticket conversation when a ticket id is given"
    )
    tone_preference: str = Field(
        default=MessageTone.PROFESSIONAL,
        description="Default reply tone"
    )
    generation_timeout_seconds: float = Field(
        default=60.0,
        description="Overall deadline for a single generate() call",
        gt=0
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("tone_preference")
    @classmethod
    def validate_tone(cls, v: str) -> str:
        if v not in VALID_TONES:
            raise ValueError(f"tone_preference must be one of {VALID_TONES}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_PROVIDERS:
            raise ValueError(f"llm_provider must be one of {VALID_PROVIDERS}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
