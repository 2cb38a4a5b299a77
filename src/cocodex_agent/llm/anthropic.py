"""
Anthropic Claude LLM provider.
"""

from typing import Any

import anthropic
import structlog

from .base import BaseLLM, LLMMessage, LLMResponse, TextPart

logger = structlog.get_logger()


class AnthropicLLM(BaseLLM):
    """Anthropic Claude LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        super().__init__(api_key, model, base_url, max_tokens, temperature)
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _convert_content(self, msg: LLMMessage) -> str | list[dict[str, Any]]:
        if isinstance(msg.content, str):
            return msg.content

        blocks: list[dict[str, Any]] = []
        for part in msg.content:
            if isinstance(part, TextPart):
                blocks.append({"type": "text", "text": part.text})
            else:
                blocks.append({
                    "type": "image",
                    "source": {"type": "url", "url": part.url},
                })
        return blocks

    def _convert_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert LLMMessages to Anthropic format."""
        converted = []

        for msg in messages:
            if msg.role == "system":
                continue

            if msg.role == "tool":
                converted.append({
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": msg.tool_call_id,
                            "content": msg.text,
                        }
                    ],
                })
            elif msg.role == "assistant" and msg.tool_calls:
                content: list[dict[str, Any]] = []
                if msg.text:
                    content.append({"type": "text", "text": msg.text})
                for tc in msg.tool_calls:
                    content.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tc.arguments,
                    })
                converted.append({"role": "assistant", "content": content})
            else:
                converted.append({
                    "role": msg.role,
                    "content": self._convert_content(msg),
                })

        return converted

    def _extract_system_prompt(self, messages: list[LLMMessage]) -> str | None:
        """Join every system message into the top-level system prompt."""
        system_parts = [msg.text for msg in messages if msg.role == "system"]
        return "\n\n".join(system_parts) if system_parts else None

    async def generate(
        self,
        messages: list[LLMMessage],
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from Claude."""
        system = system_prompt or self._extract_system_prompt(messages)
        converted_messages = self._convert_messages(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": converted_messages,
        }

        if system:
            kwargs["system"] = system

        try:
            response = await self.client.messages.create(**kwargs)

            content = ""
            for block in response.content:
                if block.type == "text":
                    content += block.text

            return LLMResponse(
                content=content,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                model=response.model,
                stop_reason=response.stop_reason,
                raw_response=response,
            )

        except anthropic.APIError as e:
            logger.error("Anthropic API error", error=str(e))
            raise
