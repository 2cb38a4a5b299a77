"""
Agent module - the brain of the system.

Includes:
- Agent: Message processing with the LLM and slash commands
- SessionManager: In-memory conversation sessions
- TokenEstimator: tiktoken-based context size estimation
- CompactionEngine: AI-assisted context summarization
"""

from .core import Agent, create_agent
from .session import Session, SessionManager, SessionNotFoundError
from .tokens import TokenEstimator, TokenizerError
from .compaction import (
    CompactionConfig,
    CompactionEngine,
    CompactionOutcome,
    CompactionStatus,
    LLMSummarizer,
    Partition,
    Summarizer,
    partition_history,
    render_transcript,
)

__all__ = [
    "Agent",
    "create_agent",
    "Session",
    "SessionManager",
    "SessionNotFoundError",
    "TokenEstimator",
    "TokenizerError",
    "CompactionConfig",
    "CompactionEngine",
    "CompactionOutcome",
    "CompactionStatus",
    "LLMSummarizer",
    "Partition",
    "Summarizer",
    "partition_history",
    "render_transcript",
]
