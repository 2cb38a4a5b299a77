"""
Token estimation for conversation histories.

Text is measured with a tiktoken encoding. Images use the vision API's
fixed-cost model: a low-detail image is 85 tokens; anything else is charged a
flat conservative estimate, since the real cost depends on the image size
(255-765 tokens for a typical image).
"""

from typing import Collection, Protocol, Sequence

import structlog
import tiktoken

from ..config import ConfigurationError, Settings
from ..llm.base import ImagePart, LLMMessage

logger = structlog.get_logger()

LOW_DETAIL_IMAGE_TOKENS = 85
DEFAULT_IMAGE_TOKENS = 400
MESSAGE_OVERHEAD_TOKENS = 4  # role and metadata framing
REQUEST_OVERHEAD_TOKENS = 3  # reply priming

DEFAULT_TOKENIZER_MODEL = "gpt-4o"
FALLBACK_ENCODING = "o200k_base"  # estimate only for non-OpenAI models


class TokenizerError(RuntimeError):
    """The encoder rejected a text; the tokenizer does not match the model."""


class Encoding(Protocol):
    """The part of a tiktoken ``Encoding`` the estimator uses."""

    def encode(self, text: str, *, disallowed_special: Collection[str] = ...) -> list[int]: ...


def load_encoding(model: str | None = None, encoding_name: str | None = None) -> Encoding:
    """Load a tiktoken encoding by explicit name or by model name.

    A model tiktoken does not know gets the fallback encoding; an unknown
    explicit encoding name is a configuration error.
    """
    if encoding_name:
        try:
            return tiktoken.get_encoding(encoding_name)
        except ValueError as e:
            raise ConfigurationError(f"Unknown tiktoken encoding: {encoding_name}") from e

    model = model or DEFAULT_TOKENIZER_MODEL
    # OpenRouter style ids: "openai/gpt-4o"
    lookup = model.rsplit("/", 1)[-1]
    try:
        return tiktoken.encoding_for_model(lookup)
    except KeyError:
        logger.warning(
            "No tiktoken encoding known for model, using fallback",
            model=model,
            encoding=FALLBACK_ENCODING,
        )
        return tiktoken.get_encoding(FALLBACK_ENCODING)


class TokenEstimator:
    """Estimates how many tokens a message sequence costs in one model call."""

    def __init__(
        self,
        encoding: Encoding,
        image_tokens: int = DEFAULT_IMAGE_TOKENS,
        low_detail_image_tokens: int = LOW_DETAIL_IMAGE_TOKENS,
        message_overhead: int = MESSAGE_OVERHEAD_TOKENS,
        request_overhead: int = REQUEST_OVERHEAD_TOKENS,
    ):
        self.encoding = encoding
        self.image_tokens = image_tokens
        self.low_detail_image_tokens = low_detail_image_tokens
        self.message_overhead = message_overhead
        self.request_overhead = request_overhead

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None) -> "TokenEstimator":
        """Build an estimator from settings, picking the encoding for ``model``."""
        encoding = load_encoding(
            model=settings.tokenizer_model or model,
            encoding_name=settings.tokenizer_encoding or None,
        )
        return cls(
            encoding,
            image_tokens=settings.image_token_estimate,
            low_detail_image_tokens=settings.low_detail_image_tokens,
            message_overhead=settings.message_overhead_tokens,
            request_overhead=settings.request_overhead_tokens,
        )

    def count_text(self, text: str) -> int:
        """Count the tokens of a single string."""
        try:
            # special-token markup in user text is counted as ordinary text
            return len(self.encoding.encode(text, disallowed_special=()))
        except Exception as e:
            logger.error("Tokenizer failed to encode text", error=str(e))
            raise TokenizerError(f"Tokenizer could not encode text: {e}") from e

    def count_message(self, message: LLMMessage) -> int:
        """Count one message, including its framing overhead."""
        if isinstance(message.content, str):
            tokens = self.count_text(message.content)
        else:
            tokens = 0
            for part in message.content:
                if isinstance(part, ImagePart):
                    if part.detail == "low":
                        tokens += self.low_detail_image_tokens
                    else:
                        tokens += self.image_tokens
                else:
                    tokens += self.count_text(part.text)

        return tokens + self.message_overhead

    def estimate(self, messages: Sequence[LLMMessage]) -> int:
        """Estimate the tokens for a whole request. An empty history costs nothing."""
        if not messages:
            return 0
        return sum(self.count_message(m) for m in messages) + self.request_overhead
