"""
Conversation Compaction - AI-assisted context summarization.

When the estimated size of a conversation reaches a fraction of the model's
context window, the middle of the history is replaced by a single summary
message written by the LLM.

Two entry points:
- compact_if_due: called after every turn. Keeps the leading system messages
  and the most recent messages verbatim and summarizes what lies between.
  Cheap when nothing is due.
- compact_all: the /compact command. Keeps system messages and the project
  context, summarizes everything else, and always runs.

The engine never mutates the history it is given. A new list is built only
after the summarizer returns, so a failed or cancelled summarization leaves
the caller's history as it was. Callers must not compact the same session
concurrently.
"""

import dataclasses
from dataclasses import dataclass
from typing import Protocol, Sequence

import structlog

from ..commands import CommandContext, CommandHandler, CommandResult, Error, Executed
from ..config import ConfigurationError
from ..llm.base import PROJECT_CONTEXT_NAME, SUMMARY_MESSAGE_NAME, BaseLLM, LLMMessage
from .session import SessionManager, SessionNotFoundError
from .tokens import TokenEstimator

logger = structlog.get_logger()

DEFAULT_WINDOW_BUDGET = 128_000
DEFAULT_TRIGGER_FRACTION = 0.7  # Compact when 70% of budget used
DEFAULT_RETAIN_TAIL_COUNT = 4

SUMMARY_PREFIX = "[Previous conversation summary]"

ROLE_LABELS = {
    "user": "User",
    "assistant": "Assistant",
    "system": "System",
    "tool": "Tool",
}

MIDDLE_SUMMARY_INSTRUCTIONS = """The following is an earlier part of a conversation between a user and a coding assistant.
Summarize it concisely. The summary must cover:
- The main tasks the user asked for
- The work that was done and its results
- Important context and decisions

Leave out unnecessary detail."""

FULL_SUMMARY_INSTRUCTIONS = "Summarize the following conversation concisely."


@dataclass(frozen=True)
class CompactionConfig:
    """Configuration for conversation compaction."""

    window_budget: int = DEFAULT_WINDOW_BUDGET
    trigger_fraction: float = DEFAULT_TRIGGER_FRACTION
    retain_tail_count: int = DEFAULT_RETAIN_TAIL_COUNT

    def __post_init__(self):
        if self.window_budget <= 0:
            raise ConfigurationError(f"window_budget must be positive, got {self.window_budget}")
        if not 0 < self.trigger_fraction <= 1:
            raise ConfigurationError(
                f"trigger_fraction must be in (0, 1], got {self.trigger_fraction}"
            )
        if self.retain_tail_count < 0:
            raise ConfigurationError(
                f"retain_tail_count must not be negative, got {self.retain_tail_count}"
            )


@dataclass(frozen=True)
class CompactionOutcome:
    """Result of a compaction attempt."""

    did_compact: bool
    before_count: int
    after_count: int
    before_tokens: int
    after_tokens: int
    result_history: Sequence[LLMMessage]
    summary: str = ""

    @property
    def reduction_ratio(self) -> float:
        """Fraction of estimated tokens removed (0.0 when nothing changed)."""
        if self.before_tokens == 0:
            return 0.0
        return 1 - self.after_tokens / self.before_tokens


@dataclass(frozen=True)
class CompactionStatus:
    """Occupancy report for a history."""

    message_count: int
    tokens: int
    window_budget: int
    occupancy: float
    trigger_fraction: float
    recommend_compaction: bool


@dataclass(frozen=True)
class Partition:
    """A history split into its preserved head, summarizable middle and preserved tail."""

    leading_system: tuple[LLMMessage, ...]
    middle: tuple[LLMMessage, ...]
    tail: tuple[LLMMessage, ...]


class Summarizer(Protocol):
    """Turns a role-labelled transcript into a summary."""

    async def summarize(self, conversation_text: str) -> str: ...


class LLMSummarizer:
    """Summarizer backed by an LLM provider."""

    def __init__(
        self,
        llm: BaseLLM,
        instructions: str = MIDDLE_SUMMARY_INSTRUCTIONS,
        system_prompt: str = "You are a conversation summarizer. Create concise, fact-preserving summaries.",
    ):
        self.llm = llm
        self.instructions = instructions
        self.system_prompt = system_prompt

    async def summarize(self, conversation_text: str) -> str:
        prompt = f"{self.instructions}\n\nConversation:\n{conversation_text}\n\nSummary:"
        response = await self.llm.generate(
            messages=[LLMMessage(role="user", content=prompt)],
            system_prompt=self.system_prompt,
        )
        return response.content.strip()


def partition_history(messages: Sequence[LLMMessage], retain_tail_count: int) -> Partition:
    """Split a history into leading system messages, middle and recent tail."""
    head_end = 0
    while head_end < len(messages) and messages[head_end].role == "system":
        head_end += 1

    rest = messages[head_end:]
    if len(rest) > retain_tail_count:
        split = len(rest) - retain_tail_count
        middle, tail = rest[:split], rest[split:]
    else:
        middle, tail = (), rest

    return Partition(
        leading_system=tuple(messages[:head_end]),
        middle=tuple(middle),
        tail=tuple(tail),
    )


def is_project_context(message: LLMMessage) -> bool:
    return message.name == PROJECT_CONTEXT_NAME


def render_transcript(messages: Sequence[LLMMessage], include_system: bool = True) -> str:
    """Render messages as a ``Role: text`` transcript separated by blank lines."""
    entries = []
    for msg in messages:
        if msg.role == "system" and not include_system:
            continue
        label = ROLE_LABELS.get(msg.role, "Unknown")
        entries.append(f"{label}: {msg.text}")
    return "\n\n".join(entries)


def _summary_message(role: str, summary: str) -> LLMMessage:
    return LLMMessage(
        role=role,  # type: ignore[arg-type]
        content=f"{SUMMARY_PREFIX}\n{summary}",
        name=SUMMARY_MESSAGE_NAME,
    )


class CompactionEngine:
    """Tracks conversation size against a context budget and compacts it."""

    def __init__(
        self,
        summarizer: Summarizer,
        estimator: TokenEstimator,
        config: CompactionConfig | None = None,
        full_summarizer: Summarizer | None = None,
    ):
        self.summarizer = summarizer
        self.full_summarizer = full_summarizer or summarizer
        self.estimator = estimator
        self._config = config or CompactionConfig()

    @property
    def config(self) -> CompactionConfig:
        return self._config

    def update_config(self, **changes) -> CompactionConfig:
        """Replace the configuration, overriding only the given fields."""
        self._config = dataclasses.replace(self._config, **changes)
        logger.info(
            "Compaction config updated",
            window_budget=self._config.window_budget,
            trigger_fraction=self._config.trigger_fraction,
            retain_tail_count=self._config.retain_tail_count,
        )
        return self._config

    def estimate_tokens(self, messages: Sequence[LLMMessage]) -> int:
        return self.estimator.estimate(messages)

    def occupancy(self, messages: Sequence[LLMMessage]) -> float:
        return self.estimate_tokens(messages) / self._config.window_budget

    def should_compact(self, messages: Sequence[LLMMessage]) -> bool:
        return self.occupancy(messages) >= self._config.trigger_fraction

    def partition(self, messages: Sequence[LLMMessage]) -> Partition:
        return partition_history(messages, self._config.retain_tail_count)

    def status(self, messages: Sequence[LLMMessage]) -> CompactionStatus:
        tokens = self.estimate_tokens(messages)
        occupancy = tokens / self._config.window_budget
        return CompactionStatus(
            message_count=len(messages),
            tokens=tokens,
            window_budget=self._config.window_budget,
            occupancy=occupancy,
            trigger_fraction=self._config.trigger_fraction,
            recommend_compaction=occupancy >= self._config.trigger_fraction,
        )

    async def compact_if_due(
        self,
        messages: Sequence[LLMMessage],
        force: bool = False,
    ) -> CompactionOutcome:
        """Summarize the middle of the history when occupancy reaches the trigger.

        With ``force`` the threshold check is skipped, but a history whose
        middle is empty is still returned unchanged. Summarizer errors
        propagate to the caller.
        """
        config = self._config
        before_tokens = self.estimate_tokens(messages)
        unchanged = CompactionOutcome(
            did_compact=False,
            before_count=len(messages),
            after_count=len(messages),
            before_tokens=before_tokens,
            after_tokens=before_tokens,
            result_history=messages,
        )

        if not force and before_tokens / config.window_budget < config.trigger_fraction:
            return unchanged

        partition = partition_history(messages, config.retain_tail_count)
        if not partition.middle:
            logger.info("Nothing to compact", message_count=len(messages))
            return unchanged

        logger.info(
            "Starting conversation compaction",
            message_count=len(messages),
            summarized=len(partition.middle),
            estimated_tokens=before_tokens,
            window_budget=config.window_budget,
            forced=force,
        )

        summary = await self.summarizer.summarize(render_transcript(partition.middle))

        compacted = [
            *partition.leading_system,
            _summary_message("system", summary),
            *partition.tail,
        ]
        outcome = CompactionOutcome(
            did_compact=True,
            before_count=len(messages),
            after_count=len(compacted),
            before_tokens=before_tokens,
            after_tokens=self.estimate_tokens(compacted),
            result_history=compacted,
            summary=summary,
        )

        logger.info(
            "Compaction complete",
            before_count=outcome.before_count,
            after_count=outcome.after_count,
            before_tokens=outcome.before_tokens,
            after_tokens=outcome.after_tokens,
        )
        return outcome

    async def compact_all(self, messages: Sequence[LLMMessage]) -> CompactionOutcome:
        """Rewrite the whole history as preserved messages plus one summary.

        Preserved are every system message, then every project-context
        message. Everything else is summarized, regardless of occupancy.
        """
        system_messages = [m for m in messages if m.role == "system"]
        context_messages = [
            m for m in messages if m.role != "system" and is_project_context(m)
        ]
        conversation = [
            m for m in messages if m.role != "system" and not is_project_context(m)
        ]

        logger.info(
            "Starting full compaction",
            message_count=len(messages),
            summarized=len(conversation),
        )

        summary = await self.full_summarizer.summarize(
            render_transcript(conversation, include_system=False)
        )

        compacted = [
            *system_messages,
            *context_messages,
            _summary_message("assistant", summary),
        ]
        return CompactionOutcome(
            did_compact=True,
            before_count=len(messages),
            after_count=len(compacted),
            before_tokens=self.estimate_tokens(messages),
            after_tokens=self.estimate_tokens(compacted),
            result_history=compacted,
            summary=summary,
        )

    def compact_handler(self, sessions: SessionManager) -> CommandHandler:
        """Build the /compact command: full rewrite of a session's history."""

        async def handle_compact(args: str, context: CommandContext | None = None) -> CommandResult:
            session_id = (context.session_id if context else None) or sessions.current_session_id

            try:
                messages = sessions.get_messages(session_id)
            except SessionNotFoundError as e:
                return Error(f"Compaction unavailable: {e.args[0] if e.args else e}")

            print("\nCompacting conversation...")
            try:
                outcome = await self.compact_all(messages)
            except Exception as e:
                logger.error("Compaction failed", session_id=session_id, error=str(e))
                return Error(f"Compaction failed: {e}")

            sessions.replace_messages(outcome.result_history, session_id)

            logger.info(
                "Session compacted",
                session_id=session_id,
                before_count=outcome.before_count,
                after_count=outcome.after_count,
                before_tokens=outcome.before_tokens,
                after_tokens=outcome.after_tokens,
            )
            print("Compaction complete")
            print(f"  Messages: {outcome.before_count} -> {outcome.after_count}")
            print(f"  Tokens: {outcome.before_tokens} -> {outcome.after_tokens}")
            print(f"  Reduction: {outcome.reduction_ratio * 100:.1f}%")
            return Executed()

        return handle_compact

    def status_handler(self, sessions: SessionManager) -> CommandHandler:
        """Build the /status command: print the occupancy report."""

        async def handle_status(args: str, context: CommandContext | None = None) -> CommandResult:
            session_id = (context.session_id if context else None) or sessions.current_session_id

            try:
                messages = sessions.get_messages(session_id)
            except SessionNotFoundError as e:
                return Error(f"Status unavailable: {e.args[0] if e.args else e}")

            report = self.status(messages)
            print("\nSession status:")
            print(f"  Messages: {report.message_count}")
            print(f"  Tokens: {report.tokens} / {report.window_budget}")
            print(f"  Usage: {report.occupancy * 100:.1f}%")
            print(f"  Compaction threshold: {report.trigger_fraction * 100:.0f}%")
            if report.recommend_compaction:
                print("  Compaction recommended")
            else:
                print("  OK")
            return Executed()

        return handle_status
