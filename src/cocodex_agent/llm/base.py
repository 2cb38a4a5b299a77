"""
Base classes for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Union

# Message names used as tags
PROJECT_CONTEXT_NAME = "project_context"
SUMMARY_MESSAGE_NAME = "conversation_summary"


@dataclass(frozen=True)
class ToolCall:
    """A tool call recorded on an assistant message.

    Histories may carry tool traffic from earlier turns; the adapters only
    convert it to each provider's wire shape. No tool loop runs here.
    """

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class TextPart:
    """A text segment of a multi-part message."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """An image reference inside a multi-part message.

    ``detail`` follows the vision API hint: "low", "high" or "auto".
    None means the caller did not say.
    """

    url: str
    detail: Literal["low", "high", "auto"] | None = None


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class LLMMessage:
    """A message in the conversation.

    Messages are never modified after creation; history changes are made by
    replacing the whole sequence.
    """

    role: Literal["user", "assistant", "system", "tool"]
    content: str | list[ContentPart]
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @property
    def text(self) -> str:
        """Plain-text view of the content (image parts become placeholders)."""
        if isinstance(self.content, str):
            return self.content
        pieces = []
        for part in self.content:
            if isinstance(part, TextPart):
                pieces.append(part.text)
            else:
                pieces.append(f"[image: {part.url}]")
        return "\n".join(pieces)


@dataclass
class LLMResponse:
    """Response from an LLM."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = None


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
