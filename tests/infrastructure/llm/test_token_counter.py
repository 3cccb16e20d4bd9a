"""Tests for TokenCounter implementations."""

from unittest.mock import patch

import pytest

from chatwindow.config import TokenizerConfig
from chatwindow.infrastructure.llm import (
    CharacterTokenEstimator,
    LiteLLMTokenCounter,
    TokenCountError,
    create_token_counter,
)


class TestLiteLLMTokenCounter:
    """LiteLLMTokenCounter tests."""

    @pytest.fixture
    def token_counter(self) -> LiteLLMTokenCounter:
        """Create LiteLLMTokenCounter instance."""
        return LiteLLMTokenCounter(model="gpt-4o")

    def test_count_success(self, token_counter: LiteLLMTokenCounter) -> None:
        with patch("litellm.token_counter", return_value=42) as mock_counter:
            result = token_counter.count("Hello, world")

            assert result == 42
            mock_counter.assert_called_once_with(model="gpt-4o", text="Hello, world")

    def test_empty_text_not_sent(self, token_counter: LiteLLMTokenCounter) -> None:
        """Test that empty text is free and skips the tokenizer."""
        with patch("litellm.token_counter") as mock_counter:
            assert token_counter.count("") == 0
            mock_counter.assert_not_called()

    def test_error_is_converted(self, token_counter: LiteLLMTokenCounter) -> None:
        """Test that tokenizer failures are wrapped."""
        with patch("litellm.token_counter", side_effect=RuntimeError("boom")):
            with pytest.raises(TokenCountError, match="boom") as exc_info:
                token_counter.count("Hello")

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestCharacterTokenEstimator:
    """CharacterTokenEstimator tests."""

    def test_rounds_up(self) -> None:
        estimator = CharacterTokenEstimator()
        assert estimator.count("abcde") == 2
        assert estimator.count("abcd") == 1
        assert estimator.count("") == 0

    def test_custom_ratio(self) -> None:
        assert CharacterTokenEstimator(chars_per_token=3).count("abcdefg") == 3

    def test_invalid_ratio(self) -> None:
        with pytest.raises(ValueError):
            CharacterTokenEstimator(chars_per_token=0)


class TestCreateTokenCounter:
    """create_token_counter tests."""

    def test_litellm(self) -> None:
        counter = create_token_counter(TokenizerConfig(strategy="litellm", model="m"))
        assert isinstance(counter, LiteLLMTokenCounter)
        assert counter.model == "m"

    def test_characters(self) -> None:
        counter = create_token_counter(
            TokenizerConfig(strategy="characters", chars_per_token=2)
        )
        assert isinstance(counter, CharacterTokenEstimator)
        assert counter.count("abc") == 2

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError, match="Unknown tokenizer strategy"):
            create_token_counter(TokenizerConfig(strategy="magic"))
