"""
Tests for LLM provider adapters and the factory.
"""

import pytest

from cocodex_agent.config import ConfigurationError, LLMConfig
from cocodex_agent.llm import AnthropicLLM, OpenAILLM, create_llm
from cocodex_agent.llm.base import ImagePart, LLMMessage, TextPart, ToolCall


def multipart_message() -> LLMMessage:
    return LLMMessage(
        role="user",
        content=[
            TextPart("What is in this picture?"),
            ImagePart("https://example.com/cat.png", detail="low"),
        ],
    )


def test_message_text_renders_images():
    assert multipart_message().text == "What is in this picture?\n[image: https://example.com/cat.png]"


def test_openai_converts_image_parts():
    llm = OpenAILLM(api_key="test")

    converted = llm._convert_messages([multipart_message()])

    assert converted == [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "What is in this picture?"},
                {
                    "type": "image_url",
                    "image_url": {"url": "https://example.com/cat.png", "detail": "low"},
                },
            ],
        }
    ]


def test_openai_converts_tool_messages():
    llm = OpenAILLM(api_key="test")
    messages = [
        LLMMessage(
            role="assistant",
            content="",
            tool_calls=[ToolCall(id="call_1", name="read_file", arguments={"path": "a.py"})],
        ),
        LLMMessage(role="tool", content="print('hi')", tool_call_id="call_1"),
    ]

    converted = llm._convert_messages(messages)

    assert converted[0]["content"] is None
    assert converted[0]["tool_calls"][0]["function"] == {
        "name": "read_file",
        "arguments": '{"path": "a.py"}',
    }
    assert converted[1] == {"role": "tool", "tool_call_id": "call_1", "content": "print('hi')"}


def test_anthropic_skips_system_and_maps_images():
    llm = AnthropicLLM(api_key="test")
    messages = [LLMMessage(role="system", content="rules"), multipart_message()]

    converted = llm._convert_messages(messages)

    assert len(converted) == 1
    assert converted[0]["content"][1] == {
        "type": "image",
        "source": {"type": "url", "url": "https://example.com/cat.png"},
    }


def test_anthropic_joins_system_messages():
    llm = AnthropicLLM(api_key="test")
    messages = [
        LLMMessage(role="system", content="rules"),
        LLMMessage(role="system", content="[Previous conversation summary]\nearlier work"),
        LLMMessage(role="user", content="continue"),
    ]

    assert llm._extract_system_prompt(messages) == (
        "rules\n\n[Previous conversation summary]\nearlier work"
    )
    assert llm._extract_system_prompt(messages[2:]) is None


@pytest.mark.parametrize(
    "provider, expected",
    [("openai", OpenAILLM), ("anthropic", AnthropicLLM), ("openrouter", OpenAILLM)],
)
def test_factory_routes_providers(provider, expected):
    llm = create_llm(LLMConfig(provider=provider, api_key="test", model="m"))
    assert isinstance(llm, expected)


def test_factory_openrouter_base_url():
    llm = create_llm(LLMConfig(provider="openrouter", api_key="test"))
    assert llm.base_url == "https://openrouter.ai/api/v1"


def test_factory_temperature_override():
    llm = create_llm(LLMConfig(api_key="test", temperature=1.0), temperature=0.3)
    assert llm.temperature == 0.3


def test_factory_rejects_unknown_provider():
    config = LLMConfig.model_construct(provider="gemini", api_key="test", model="m")
    with pytest.raises(ConfigurationError):
        create_llm(config)
