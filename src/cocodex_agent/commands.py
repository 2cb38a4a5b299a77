"""
Slash-command registry.

Commands are either prompt templates (the ``${ARGUMENTS}`` placeholder is
replaced by whatever follows the command name) or delegates, async functions
registered at runtime such as ``/compact`` and ``/status``. Every execution
resolves to one of four results:

- Prompt: text to send to the model
- Close: end the conversation
- Executed: handled locally, wait for the next input
- Error: something went wrong, message for the user
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

import structlog

logger = structlog.get_logger()

ARGUMENTS_PLACEHOLDER = "${ARGUMENTS}"

_COMMAND_PATTERN = re.compile(r"^/(\w+)(?:\s+(.+))?$", re.DOTALL)


@dataclass(frozen=True)
class Prompt:
    text: str


@dataclass(frozen=True)
class Close:
    pass


@dataclass(frozen=True)
class Executed:
    pass


@dataclass(frozen=True)
class Error:
    message: str


CommandResult = Union[Prompt, Close, Executed, Error]


@dataclass(frozen=True)
class CommandContext:
    """What a delegate gets to know about the caller.

    ``session_id`` is optional; handlers fall back to the current session.
    """

    session_id: str | None = None


CommandHandler = Callable[[str, CommandContext | None], Awaitable[CommandResult]]


@dataclass(frozen=True)
class Template:
    text: str
    description: str = ""


@dataclass(frozen=True)
class Delegate:
    handler: CommandHandler
    description: str = ""


CommandEntry = Union[Template, Delegate]


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: str = ""


def parse_command(text: str) -> ParsedCommand | None:
    """Parse ``/name args`` input. Returns None for ordinary messages."""
    match = _COMMAND_PATTERN.match(text.strip())
    if match is None:
        return None
    return ParsedCommand(name=match.group(1), args=(match.group(2) or "").strip())


class CommandRegistry:
    """Registry for slash commands."""

    def __init__(self):
        self._commands: dict[str, CommandEntry] = {}

    def register(self, name: str, handler: CommandHandler, description: str = "") -> None:
        """Register a delegate command."""
        self._commands[name] = Delegate(handler=handler, description=description)
        logger.info("Command registered", command=name, kind="delegate")

    def register_template(self, name: str, template: str, description: str = "") -> None:
        """Register a prompt-template command."""
        self._commands[name] = Template(text=template, description=description)
        logger.info("Command registered", command=name, kind="template")

    def unregister(self, name: str) -> None:
        """Unregister a command."""
        if name in self._commands:
            del self._commands[name]
            logger.info("Command unregistered", command=name)

    def get(self, name: str) -> CommandEntry | None:
        return self._commands.get(name)

    def has_command(self, name: str) -> bool:
        return name in self._commands

    def list_commands(self) -> list[str]:
        """List all registered command names."""
        return list(self._commands.keys())

    def describe(self) -> str:
        """Human-readable list of commands."""
        if not self._commands:
            return "No commands available."
        lines = ["Available commands:"]
        for name, entry in self._commands.items():
            lines.append(f"  /{name}: {entry.description or '(no description)'}")
        return "\n".join(lines)

    async def execute(
        self,
        name: str,
        args: str = "",
        context: CommandContext | None = None,
    ) -> CommandResult:
        """Execute a command by name."""
        entry = self._commands.get(name)
        if entry is None:
            return Error(f"Unknown command: /{name}")

        if isinstance(entry, Template):
            return Prompt(entry.text.replace(ARGUMENTS_PLACEHOLDER, args))
        elif isinstance(entry, Delegate):
            logger.info("Executing command", command=name)
            return await entry.handler(args, context)
        else:
            raise TypeError(f"Unsupported command entry: {entry!r}")
