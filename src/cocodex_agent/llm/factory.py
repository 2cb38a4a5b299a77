"""
LLM factory for creating provider instances.

Supports: OpenAI GPT, Anthropic Claude, OpenRouter.
"""

from ..config import ConfigurationError, LLMConfig, Settings
from .anthropic import AnthropicLLM
from .base import BaseLLM
from .openai import OpenAILLM


def create_llm(
    config: LLMConfig | None = None,
    settings: Settings | None = None,
    temperature: float | None = None,
) -> BaseLLM:
    """Create an LLM instance based on configuration.

    Provider routing:
    - openai -> OpenAILLM (native OpenAI SDK)
    - anthropic -> AnthropicLLM (native Anthropic SDK)
    - openrouter -> OpenAILLM (OpenAI-compatible endpoint)

    ``temperature`` overrides the configured value, e.g. for summarization.
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.get_llm_config()

    provider = config.provider
    temperature = config.temperature if temperature is None else temperature

    if provider == "openai":
        return OpenAILLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=temperature,
        )
    elif provider == "anthropic":
        return AnthropicLLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=temperature,
        )
    elif provider == "openrouter":
        return OpenAILLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url or "https://openrouter.ai/api/v1",
            max_tokens=config.max_tokens,
            temperature=temperature,
        )
    else:
        raise ConfigurationError(f"Unknown LLM provider: {provider}")
