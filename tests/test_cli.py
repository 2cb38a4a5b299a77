"""
Tests for the command-line interface.
"""

from unittest.mock import patch

from cocodex_agent.cli import show_config, show_context
from cocodex_agent.config import Settings

from conftest import WordEncoding


def test_show_config_masks_keys(capsys):
    settings = Settings(openai_api_key="sk-abcdefghijklmnop", anthropic_api_key="")
    with patch("cocodex_agent.cli.get_settings", return_value=settings):
        show_config(check=False)

    out = capsys.readouterr().out
    assert "sk-a...mnop" in out
    assert "abcdefghijkl" not in out
    assert "Threshold: 70%" in out


def test_show_config_check_reports_errors(capsys):
    settings = Settings(
        openai_api_key="",
        anthropic_api_key="",
        openrouter_api_key="",
        compaction_threshold=2.0,
    )
    with patch("cocodex_agent.cli.get_settings", return_value=settings):
        show_config(check=True)

    out = capsys.readouterr().out
    assert "At least one LLM API key is required" in out
    assert "trigger_fraction" in out


def test_show_context_lists_files(tmp_path, capsys):
    (tmp_path / "cocoagent.md").write_text("one two three", encoding="utf-8")
    settings = Settings(context_search_depth=1, context_window_tokens=1000)

    with patch("cocodex_agent.cli.get_settings", return_value=settings), patch(
        "cocodex_agent.agent.tokens.tiktoken.encoding_for_model", return_value=WordEncoding()
    ):
        show_context(str(tmp_path))

    out = capsys.readouterr().out
    assert "Found 1 context file(s)" in out
    assert "current directory" in out
    assert "% of 1000" in out


def test_show_context_without_files(tmp_path, capsys):
    settings = Settings(context_search_depth=1)
    with patch("cocodex_agent.cli.get_settings", return_value=settings):
        show_context(str(tmp_path))

    assert "No cocoagent.md found" in capsys.readouterr().out
