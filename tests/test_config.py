"""
Tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest

from cocodex_agent.agent.compaction import CompactionConfig
from cocodex_agent.config import ConfigurationError, LLMConfig, Settings


def test_settings_default_values():
    """Test that settings have sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings()

        assert settings.app_name == "cocodex-agent"
        assert settings.default_provider == "openai"
        assert settings.context_window_tokens == 128_000
        assert settings.compaction_threshold == 0.7
        assert settings.compaction_keep_recent == 4
        assert settings.summary_temperature == 0.3
        assert settings.context_file_name == "cocoagent.md"


def test_settings_from_env():
    """Test loading settings from environment variables."""
    env = {
        "ANTHROPIC_API_KEY": "test_anthropic_key",
        "DEFAULT_PROVIDER": "anthropic",
        "DEFAULT_MODEL": "claude-opus-4",
        "CONTEXT_WINDOW_TOKENS": "200000",
        "COMPACTION_THRESHOLD": "0.8",
        "CONTEXT_FILE_NAME": "  AGENTS.md ",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings()

        assert settings.anthropic_api_key == "test_anthropic_key"
        assert settings.default_provider == "anthropic"
        assert settings.default_model == "claude-opus-4"
        assert settings.context_window_tokens == 200_000
        assert settings.compaction_threshold == 0.8
        assert settings.context_file_name == "AGENTS.md"


def test_llm_config():
    """Test LLM configuration generation."""
    env = {
        "OPENAI_API_KEY": "test_openai_key",
        "ANTHROPIC_API_KEY": "test_anthropic_key",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings()

        openai_config = settings.get_llm_config("openai")
        assert isinstance(openai_config, LLMConfig)
        assert openai_config.provider == "openai"
        assert openai_config.api_key == "test_openai_key"
        assert "gpt" in openai_config.model

        anthropic_config = settings.get_llm_config("anthropic")
        assert anthropic_config.provider == "anthropic"
        assert anthropic_config.api_key == "test_anthropic_key"
        assert "claude" in anthropic_config.model


def test_default_model_applies_to_default_provider_only():
    env = {"DEFAULT_PROVIDER": "openai", "DEFAULT_MODEL": "gpt-4.1-mini"}

    with patch.dict(os.environ, env, clear=True):
        settings = Settings()

        assert settings.get_llm_config().model == "gpt-4.1-mini"
        assert "claude" in settings.get_llm_config("anthropic").model


def test_openrouter_config_has_base_url():
    with patch.dict(os.environ, {"OPENROUTER_API_KEY": "or-key"}, clear=True):
        config = Settings().get_llm_config("openrouter")

        assert config.base_url == "https://openrouter.ai/api/v1"
        assert config.api_key == "or-key"


def test_unknown_provider_raises():
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ConfigurationError):
            Settings().get_llm_config("gemini")


def test_compaction_config_from_settings():
    env = {
        "CONTEXT_WINDOW_TOKENS": "32000",
        "COMPACTION_THRESHOLD": "0.5",
        "COMPACTION_KEEP_RECENT": "6",
    }

    with patch.dict(os.environ, env, clear=True):
        config = Settings().get_compaction_config()

        assert config == CompactionConfig(
            window_budget=32_000, trigger_fraction=0.5, retain_tail_count=6
        )


@pytest.mark.parametrize(
    "env",
    [
        {"COMPACTION_THRESHOLD": "1.5"},
        {"CONTEXT_WINDOW_TOKENS": "0"},
        {"COMPACTION_KEEP_RECENT": "-1"},
    ],
)
def test_invalid_compaction_settings_raise(env):
    with patch.dict(os.environ, env, clear=True):
        settings = Settings()

        with pytest.raises(ConfigurationError):
            settings.get_compaction_config()
