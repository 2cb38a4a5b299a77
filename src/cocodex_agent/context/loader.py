"""
Project Context Loader - discovers cocoagent.md files for the first message.

Starting from the working directory, every parent directory is checked for a
context file. The files found are stitched together outermost first, so rules
from the repository root come before rules from a subdirectory, and the
result is sent to the model as the first user message of a session.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..llm.base import PROJECT_CONTEXT_NAME, LLMMessage

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_FILE = "cocoagent.md"
DEFAULT_MAX_DEPTH = 10

SEPARATOR = "=" * 60

INTRO = "The following is context information about this project. Use it to help the user."
OUTRO = "Follow the project rules and guidelines above while helping the user."
NOT_FOUND = "No project context file was found."


@dataclass
class ContextFile:
    """A context file found on the way up from the start directory."""

    path: Path
    content: str
    level: int  # 0 is the start directory, 1 its parent, ...

    @property
    def label(self) -> str:
        if self.level == 0:
            return "current directory"
        if self.level == 1:
            return "1 level up"
        return f"{self.level} levels up"


class ProjectContextLoader:
    """Loads project context files from the start directory and its parents."""

    def __init__(
        self,
        start_dir: Optional[str | Path] = None,
        file_name: str = DEFAULT_CONTEXT_FILE,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """Initialize the loader.

        Args:
            start_dir: Directory to start searching from (defaults to cwd)
            file_name: Name of the context file to look for
            max_depth: Maximum number of directories to check
        """
        self.start_dir = Path(start_dir or Path.cwd()).expanduser().resolve()
        self.file_name = file_name
        self.max_depth = max_depth

    def find_context_files(self) -> list[ContextFile]:
        """Find context files, ordered from the outermost directory inward.

        Returns:
            The context files found, possibly none
        """
        found: list[ContextFile] = []
        current = self.start_dir

        for level in range(self.max_depth):
            candidate = current / self.file_name
            if candidate.is_file():
                try:
                    content = candidate.read_text(encoding="utf-8")
                except OSError as e:
                    logger.warning(f"Could not read context file {candidate}: {e}")
                else:
                    found.insert(0, ContextFile(path=candidate, content=content, level=level))
                    logger.info(f"Found context file {candidate} ({len(content)} chars)")

            if current.parent == current:
                break
            current = current.parent

        return found

    def build_initial_message(self) -> str:
        """Build the text of the first user message from all context files."""
        contexts = self.find_context_files()

        if not contexts:
            logger.warning(f"No {self.file_name} found above {self.start_dir}")
            return NOT_FOUND

        parts = [INTRO, ""]
        for context in contexts:
            parts.extend([
                SEPARATOR,
                f"[PROJECT CONTEXT - {context.label}]",
                f"File: {context.path}",
                SEPARATOR,
                "",
                context.content,
                "",
            ])
        parts.extend([SEPARATOR, OUTRO])

        return "\n".join(parts)

    def build_context_message(self) -> LLMMessage:
        """Build the tagged user message that carries the project context."""
        return LLMMessage(
            role="user",
            content=self.build_initial_message(),
            name=PROJECT_CONTEXT_NAME,
        )
