"""
Shared fixtures.

A whitespace encoding stands in for tiktoken so token counts are exact and no
encoding files need to be downloaded.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from cocodex_agent.agent.compaction import CompactionConfig, CompactionEngine
from cocodex_agent.agent.tokens import TokenEstimator
from cocodex_agent.llm.base import LLMMessage


class WordEncoding:
    """One token per whitespace-separated word."""

    def encode(self, text, disallowed_special=()):
        return list(range(len(text.split())))


def words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


def conversation(count: int, words_each: int) -> list[LLMMessage]:
    """Alternating user/assistant messages of a fixed word count."""
    return [
        LLMMessage(
            role="user" if i % 2 == 0 else "assistant",
            content=words(words_each, f"m{i}"),
        )
        for i in range(count)
    ]


@pytest.fixture
def estimator():
    return TokenEstimator(WordEncoding())


@pytest.fixture
def summarizer():
    mock = MagicMock()
    mock.summarize = AsyncMock(return_value="short summary")
    return mock


@pytest.fixture
def engine(summarizer, estimator):
    return CompactionEngine(
        summarizer=summarizer,
        estimator=estimator,
        config=CompactionConfig(window_budget=1000, trigger_fraction=0.7, retain_tail_count=2),
    )
