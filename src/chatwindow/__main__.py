"""アプリケーションのエントリポイント

Usage:
    python -m chatwindow preview --conversation conversation.yaml
    python -m chatwindow preview --config config.yaml --conversation c.yaml --window 4000
"""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml

from chatwindow.application import ContextAssembler
from chatwindow.config import Config, ConfigError, LoggingConfig, load_config
from chatwindow.domain.entities import AssembledContext
from chatwindow.domain.services.time_format import TimeFormatter, TimeGapConfig
from chatwindow.infrastructure.fixtures import load_conversation
from chatwindow.infrastructure.llm import (
    PromptRenderer,
    TokenCountError,
    create_token_counter,
)

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()

    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_logger = logging.getLogger(logger_name)
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            individual_logger.setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


def create_assembler(config: Config) -> ContextAssembler:
    """Build a ContextAssembler from config.

    Args:
        config: Application configuration.

    Returns:
        ContextAssembler.
    """
    time_gap = None
    if config.context.time_gap_minutes is not None:
        time_gap = TimeGapConfig(
            min_gap=timedelta(minutes=config.context.time_gap_minutes)
        )

    return ContextAssembler(
        create_token_counter(config.tokenizer),
        TimeFormatter(tz=ZoneInfo(config.context.timezone)),
        time_gap=time_gap,
        fast_estimate=config.context.fast_estimate,
    )


def print_prompt(title: str, prompt: str) -> None:
    """プロンプトを整形して出力"""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print(prompt)
    print("=" * 60 + "\n")


def print_budget(context: AssembledContext) -> None:
    """トークン予算の内訳を整形して出力"""
    budget = context.token_budget
    metadata = context.metadata

    print("\n" + "+" * 60)
    print("  Token Budget")
    print("+" * 60)
    print(f"  Context window:   {budget.context_window_tokens:>8}")
    print(f"  System prompt:    {budget.system_prompt_tokens:>8}")
    print(f"  Current message:  {budget.current_message_tokens:>8}")
    print(f"  Memories:         {budget.memory_tokens:>8}")
    print(f"  History budget:   {budget.history_budget:>8}")
    print(f"  History used:     {budget.history_tokens_used:>8}")
    print()
    print(f"  Strategy:         {metadata.strategy}")
    print(
        f"  Messages:         {metadata.messages_included} included, "
        f"{metadata.messages_dropped} dropped"
    )
    print(
        f"  Cross-channel:    {metadata.cross_channel_messages_included} included"
    )
    print(
        f"  Memories:         {metadata.memories_included} included, "
        f"{metadata.memories_dropped} dropped"
    )
    print("+" * 60 + "\n")


def run_preview(args: argparse.Namespace, config: Config) -> None:
    """preview サブコマンドを実行"""
    window = args.window or config.context.context_window_tokens
    context_input = load_conversation(
        args.conversation,
        system_prompt=config.persona.system_prompt,
        context_window_tokens=window,
        max_memory_tokens=config.context.max_memory_tokens,
    )

    assembler = create_assembler(config)
    context = assembler.build_context(context_input)

    print(f"Persona: {config.persona.name}")
    print(f"Conversation: {args.conversation}")
    print_budget(context)

    renderer = PromptRenderer()
    print_prompt("System Prompt", renderer.render_system_prompt(context))

    if args.show_messages:
        messages = renderer.render(context)
        print_prompt("Messages", json.dumps(messages, indent=2, ensure_ascii=False))


def create_parser() -> argparse.ArgumentParser:
    """CLIパーサーを作成"""
    parser = argparse.ArgumentParser(
        prog="chatwindow",
        description="chatwindow コンテキストウィンドウ・プレビュー",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        default="config.yaml",
        help="config.yaml のパス (default: config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="コマンド")

    preview_parser = subparsers.add_parser(
        "preview", help="会話フィクスチャからコンテキストを組み立てて表示"
    )
    preview_parser.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="config.yaml のパス",
    )
    preview_parser.add_argument(
        "--conversation",
        required=True,
        help="会話フィクスチャ YAML のパス",
    )
    preview_parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="context.context_window_tokens を上書き",
    )
    preview_parser.add_argument(
        "--show-messages",
        action="store_true",
        help="LLM に渡すメッセージ一覧も表示",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """メインエントリポイント

    Returns:
        終了コード
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "preview" and args.window is not None and args.window <= 0:
        print("Error: --window must be positive", file=sys.stderr)
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return 1

    try:
        config = load_config(config_path)
    except (ConfigError, yaml.YAMLError) as e:
        print(f"Error: Failed to load config: {e}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    try:
        run_preview(args, config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: Failed to load conversation: {e}", file=sys.stderr)
        return 1
    except TokenCountError as e:
        print(f"Error: Token counting failed: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Run the CLI."""
    sys.exit(main())


if __name__ == "__main__":
    run()
