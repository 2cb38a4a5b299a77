"""
Core agent implementation with session history, commands and compaction.

The agent:
1. Seeds a session with the system prompt and the project context
2. Sends each user message through the LLM and records the reply
3. Compacts the history when it grows too large for the context window
4. Routes slash commands (/compact, /status, /exit, templates) through the
   command registry
"""

import structlog

from ..commands import (
    Close,
    CommandContext,
    CommandRegistry,
    CommandResult,
    Error,
    Executed,
    Prompt,
    parse_command,
)
from ..config import ConfigurationError, Settings, get_settings
from ..context import ProjectContextLoader
from ..llm import BaseLLM, LLMMessage, create_llm
from .compaction import (
    FULL_SUMMARY_INSTRUCTIONS,
    CompactionEngine,
    LLMSummarizer,
)
from .session import SessionManager
from .tokens import TokenEstimator, TokenizerError

logger = structlog.get_logger()


class Agent:
    """Processes user input against one session store and one compaction engine.

    Every collaborator is passed in; ``create_agent`` wires the defaults.
    """

    def __init__(
        self,
        llm: BaseLLM,
        sessions: SessionManager,
        engine: CompactionEngine,
        commands: CommandRegistry | None = None,
        system_prompt: str | None = None,
        context_loader: ProjectContextLoader | None = None,
    ):
        self.llm = llm
        self.sessions = sessions
        self.engine = engine
        self.commands = commands or CommandRegistry()
        self.system_prompt = system_prompt
        self.context_loader = context_loader
        self.closed = False

        self._register_builtin_commands()

    def _register_builtin_commands(self) -> None:
        """Register the compaction and exit commands."""

        async def exit_command(args: str, context: CommandContext | None = None) -> CommandResult:
            return Close()

        self.commands.register(
            "compact", self.engine.compact_handler(self.sessions), "Summarize the session history"
        )
        self.commands.register(
            "status", self.engine.status_handler(self.sessions), "Show context window usage"
        )
        self.commands.register("exit", exit_command, "End the conversation")

    def start_session(self, session_id: str | None = None) -> str:
        """Create a session seeded with the system prompt and project context."""
        session_id = self.sessions.create_session(session_id)

        if self.system_prompt:
            self.sessions.add_message(
                LLMMessage(role="system", content=self.system_prompt), session_id
            )
        if self.context_loader is not None:
            self.sessions.add_message(self.context_loader.build_context_message(), session_id)

        return session_id

    async def _maybe_compact(self, session_id: str) -> None:
        """Run compaction if the context is too large.

        A failed summarization leaves the history as it was; the
        conversation continues uncompacted. Tokenizer and configuration
        errors are fatal and propagate.
        """
        messages = self.sessions.get_messages(session_id)
        try:
            outcome = await self.engine.compact_if_due(messages)
        except (TokenizerError, ConfigurationError):
            raise
        except Exception as e:
            logger.warning("Automatic compaction failed, keeping history", error=str(e))
            return

        if outcome.did_compact:
            self.sessions.replace_messages(outcome.result_history, session_id)
            logger.info(
                "Session history compacted",
                session_id=session_id,
                before_count=outcome.before_count,
                after_count=outcome.after_count,
                reduction=round(outcome.reduction_ratio, 3),
            )

    async def process_message(self, message: str, session_id: str | None = None) -> str:
        """Process a user message and return the assistant's reply."""
        session_id = session_id or self.sessions.current_session_id or self.start_session()

        self.sessions.add_message(LLMMessage(role="user", content=message), session_id)

        try:
            response = await self.llm.generate(messages=self.sessions.get_messages(session_id))
        except Exception as e:
            logger.error("LLM generation error", error=str(e))
            error_msg = f"I encountered an error processing your message: {str(e)}"
            self.sessions.add_message(LLMMessage(role="assistant", content=error_msg), session_id)
            return error_msg

        self.sessions.add_message(LLMMessage(role="assistant", content=response.content), session_id)

        await self._maybe_compact(session_id)

        return response.content

    async def handle_input(self, text: str, session_id: str | None = None) -> str | None:
        """Handle one line of user input.

        Slash commands go through the registry. Returns the text to show the
        user, or None when a command was handled with nothing to say.
        """
        parsed = parse_command(text)
        if parsed is None:
            return await self.process_message(text, session_id)

        result = await self.commands.execute(
            parsed.name,
            parsed.args,
            CommandContext(session_id=session_id),
        )

        if isinstance(result, Prompt):
            return await self.process_message(result.text, session_id)
        elif isinstance(result, Executed):
            return None
        elif isinstance(result, Close):
            self.closed = True
            return None
        elif isinstance(result, Error):
            return f"{result.message}\n{self.commands.describe()}"
        else:
            raise TypeError(f"Unsupported command result: {result!r}")


def create_agent(
    settings: Settings | None = None,
    llm: BaseLLM | None = None,
    estimator: TokenEstimator | None = None,
    start_dir: str | None = None,
) -> Agent:
    """Wire an agent with one session store, engine and command registry."""
    settings = settings or get_settings()
    llm = llm or create_llm(settings=settings)
    summary_llm = create_llm(settings=settings, temperature=settings.summary_temperature)

    engine = CompactionEngine(
        summarizer=LLMSummarizer(summary_llm),
        full_summarizer=LLMSummarizer(summary_llm, instructions=FULL_SUMMARY_INSTRUCTIONS),
        estimator=estimator or TokenEstimator.from_settings(settings, model=llm.model),
        config=settings.get_compaction_config(),
    )

    return Agent(
        llm=llm,
        sessions=SessionManager(),
        engine=engine,
        system_prompt=settings.system_prompt,
        context_loader=ProjectContextLoader(
            start_dir=start_dir,
            file_name=settings.context_file_name,
            max_depth=settings.context_search_depth,
        ),
    )
