"""Tests for the preview CLI."""

import logging
from pathlib import Path

import pytest

from chatwindow.__main__ import configure_logging, create_assembler, main
from chatwindow.config import (
    Config,
    ContextConfig,
    LoggingConfig,
    PersonaConfig,
    TokenizerConfig,
)
from chatwindow.infrastructure.llm import CharacterTokenEstimator

CONFIG_YAML = """
persona:
  name: myao
  system_prompt: "You are Myao, a cat."
context:
  context_window_tokens: 2000
tokenizer:
  strategy: characters
"""

CONVERSATION_YAML = """
speaker_name: Myao
current_message: "Any plans?"
history:
  - {role: user, content: "Hello Myao", persona_name: Alice, persona_id: p-alice}
  - {role: assistant, content: "Nyaa~"}
participants:
  - {key: Alice, persona_id: p-alice, active: true}
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Write a config using the character estimator."""
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


@pytest.fixture
def conversation_path(tmp_path: Path) -> Path:
    """Write a small conversation fixture."""
    path = tmp_path / "conversation.yaml"
    path.write_text(CONVERSATION_YAML, encoding="utf-8")
    return path


class TestMain:
    """main tests."""

    def test_preview(
        self,
        config_path: Path,
        conversation_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = main(
            [
                "preview",
                "--config",
                str(config_path),
                "--conversation",
                str(conversation_path),
            ]
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Token Budget" in out
        assert "Context window:       2000" in out
        assert "You are Myao, a cat." in out
        assert "<participants>" in out

    def test_preview_show_messages(
        self,
        config_path: Path,
        conversation_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = main(
            [
                "--config",
                str(config_path),
                "preview",
                "--conversation",
                str(conversation_path),
                "--window",
                "500",
                "--show-messages",
            ]
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Context window:        500" in out
        assert "<chat_log>" in out
        assert '"role": "user"' in out

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1

    def test_missing_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = main(
            [
                "preview",
                "--config",
                str(tmp_path / "missing.yaml"),
                "--conversation",
                "conversation.yaml",
            ]
        )

        assert exit_code == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_invalid_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("persona:\n  name: myao\n", encoding="utf-8")

        exit_code = main(
            ["preview", "--config", str(path), "--conversation", "conversation.yaml"]
        )

        assert exit_code == 1
        assert "Failed to load config" in capsys.readouterr().err

    def test_missing_conversation(
        self,
        config_path: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = main(
            [
                "preview",
                "--config",
                str(config_path),
                "--conversation",
                str(tmp_path / "missing.yaml"),
            ]
        )

        assert exit_code == 1
        assert "Failed to load conversation" in capsys.readouterr().err

    def test_invalid_window(
        self,
        config_path: Path,
        conversation_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = main(
            [
                "preview",
                "--config",
                str(config_path),
                "--conversation",
                str(conversation_path),
                "--window",
                "0",
            ]
        )

        assert exit_code == 1
        assert "--window" in capsys.readouterr().err


class TestCreateAssembler:
    """create_assembler tests."""

    def test_builds_from_config(self) -> None:
        config = Config(
            persona=PersonaConfig(name="myao", system_prompt="sys"),
            context=ContextConfig(context_window_tokens=1000, time_gap_minutes=None),
            tokenizer=TokenizerConfig(strategy="characters"),
        )

        assembler = create_assembler(config)

        assert isinstance(assembler._counter, CharacterTokenEstimator)
        assert assembler._time_gap is None


class TestConfigureLogging:
    """configure_logging tests."""

    def test_none_is_noop(self) -> None:
        level = logging.getLogger().level
        configure_logging(None)
        assert logging.getLogger().level == level

    def test_individual_loggers(self) -> None:
        configure_logging(
            LoggingConfig(level="INFO", loggers={"chatwindow.test_logger": "DEBUG"})
        )
        assert logging.getLogger("chatwindow.test_logger").level == logging.DEBUG
