"""
Configuration management for cocodex-agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .agent.compaction import CompactionConfig


class ConfigurationError(ValueError):
    """Invalid configuration; fatal, retrying will not help."""


class LLMConfig(BaseSettings):
    """Configuration for a single LLM provider."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Literal["openai", "anthropic", "openrouter"] = "openai"
    model: str = "gpt-4o"
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 4096
    temperature: float = 1.0


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "cocodex-agent"
    debug: bool = False
    log_level: str = "INFO"

    # LLM Providers (API Keys)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")

    # Default model settings
    default_provider: Literal["openai", "anthropic", "openrouter"] = "openai"
    default_model: str = ""
    max_tokens: int = 4096
    temperature: float = 1.0
    summary_temperature: float = Field(default=0.3, description="Temperature for summarization calls")
    system_prompt: str = Field(
        default="You are a coding assistant. Follow the project context and keep answers precise.",
        description="System prompt placed at the head of every new session",
    )

    # Compaction
    context_window_tokens: int = Field(default=128_000, description="Context window budget in tokens")
    compaction_threshold: float = Field(default=0.7, description="Occupancy ratio that triggers compaction")
    compaction_keep_recent: int = Field(default=4, description="Recent messages never summarized")

    # Token estimation
    tokenizer_model: str = Field(default="", description="Model name used to pick the tiktoken encoding")
    tokenizer_encoding: str = Field(default="", description="Explicit tiktoken encoding, overrides tokenizer_model")
    image_token_estimate: int = Field(default=400, description="Tokens charged for a non-low-detail image")
    low_detail_image_tokens: int = Field(default=85, description="Tokens charged for a low-detail image")
    message_overhead_tokens: int = Field(default=4, description="Framing tokens per message")
    request_overhead_tokens: int = Field(default=3, description="Framing tokens per request")

    # Project context
    context_file_name: str = Field(default="cocoagent.md", description="Project context file name")
    context_search_depth: int = Field(default=10, description="Directories searched upward for context files")

    @field_validator("context_file_name", mode="before")
    @classmethod
    def strip_context_file_name(cls, v: str) -> str:
        return v.strip() if v else "cocoagent.md"

    def get_llm_config(self, provider: str | None = None) -> LLMConfig:
        """Get LLM configuration for a provider."""
        provider = provider or self.default_provider

        api_key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "openrouter": self.openrouter_api_key,
        }

        model_map = {
            "openai": "gpt-4o",
            "anthropic": "claude-sonnet-4-20250514",
            "openrouter": "openai/gpt-4o",
        }

        base_url_map = {
            "openai": None,
            "anthropic": None,
            "openrouter": "https://openrouter.ai/api/v1",
        }

        if provider not in api_key_map:
            raise ConfigurationError(f"Unknown LLM provider: {provider}")

        model = model_map[provider]
        if self.default_model and provider == self.default_provider:
            model = self.default_model

        return LLMConfig(
            provider=provider,  # type: ignore
            model=model,
            api_key=api_key_map[provider],
            base_url=base_url_map[provider],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    def get_compaction_config(self) -> "CompactionConfig":
        """Build the compaction configuration from these settings."""
        from .agent.compaction import CompactionConfig

        return CompactionConfig(
            window_budget=self.context_window_tokens,
            trigger_fraction=self.compaction_threshold,
            retain_tail_count=self.compaction_keep_recent,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
