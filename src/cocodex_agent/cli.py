"""
Command-line interface for cocodex-agent.
"""

import argparse
import sys

import structlog

from .config import ConfigurationError, get_settings

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cocodex",
        description="cocodex-agent - coding assistant with context compaction",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    context_parser = subparsers.add_parser(
        "context", help="Show project context files and their token cost"
    )
    context_parser.add_argument("--dir", default=None, help="Directory to start searching from")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "config":
        show_config(args.check)
    elif args.command == "context":
        show_context(args.dir)
    else:
        parser.print_help()


def show_config(check: bool) -> None:
    """Show current configuration."""
    settings = get_settings()

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    llm_config = settings.get_llm_config()

    print("\n=== cocodex-agent Configuration ===\n")

    print("LLM:")
    print(f"  Provider: {llm_config.provider}")
    print(f"  Model: {llm_config.model}")
    print(f"  OpenAI Key: {mask(settings.openai_api_key)}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")
    print(f"  OpenRouter Key: {mask(settings.openrouter_api_key)}")

    print("\nCompaction:")
    print(f"  Context Window: {settings.context_window_tokens} tokens")
    print(f"  Threshold: {settings.compaction_threshold * 100:.0f}%")
    print(f"  Recent Messages Kept: {settings.compaction_keep_recent}")
    print(f"  Tokenizer: {settings.tokenizer_encoding or settings.tokenizer_model or llm_config.model}")

    print("\nProject Context:")
    print(f"  File Name: {settings.context_file_name}")
    print(f"  Search Depth: {settings.context_search_depth}")

    if check:
        print("\n=== Configuration Check ===\n")
        errors = []

        has_llm = (
            settings.openai_api_key or
            settings.anthropic_api_key or
            settings.openrouter_api_key
        )
        if not has_llm:
            errors.append("At least one LLM API key is required")

        try:
            settings.get_compaction_config()
        except ConfigurationError as e:
            errors.append(str(e))

        if errors:
            print("❌ Errors:")
            for e in errors:
                print(f"   - {e}")
            print("\n❌ Configuration has errors - fix them before starting")
        else:
            print("✅ Configuration looks good!")


def show_context(start_dir: str | None) -> None:
    """Show the project context files and how much of the window they use."""
    from .agent.tokens import TokenEstimator
    from .context import ProjectContextLoader

    settings = get_settings()
    loader = ProjectContextLoader(
        start_dir=start_dir,
        file_name=settings.context_file_name,
        max_depth=settings.context_search_depth,
    )

    files = loader.find_context_files()
    if not files:
        print(f"No {settings.context_file_name} found above {loader.start_dir}")
        return

    print(f"\nFound {len(files)} context file(s):")
    for context_file in files:
        print(f"  {context_file.path} ({context_file.label}, {len(context_file.content)} chars)")

    try:
        estimator = TokenEstimator.from_settings(settings, model=settings.get_llm_config().model)
    except ConfigurationError as e:
        logger.error("Cannot estimate tokens", error=str(e))
        sys.exit(1)

    tokens = estimator.estimate([loader.build_context_message()])
    ratio = tokens / settings.context_window_tokens
    print(f"\nContext message: {tokens} tokens ({ratio * 100:.1f}% of {settings.context_window_tokens})")


if __name__ == "__main__":
    main()
