"""Tokenizer and prompt rendering integration."""

from chatwindow.infrastructure.llm.exceptions import TokenCountError
from chatwindow.infrastructure.llm.prompt_renderer import PromptRenderer
from chatwindow.infrastructure.llm.token_counter import (
    CharacterTokenEstimator,
    LiteLLMTokenCounter,
    create_token_counter,
)

__all__ = [
    "CharacterTokenEstimator",
    "LiteLLMTokenCounter",
    "PromptRenderer",
    "TokenCountError",
    "create_token_counter",
]
