"""TokenCounter implementations."""

import logging
import math

import litellm

from chatwindow.config import TokenizerConfig
from chatwindow.infrastructure.llm.exceptions import TokenCountError

logger = logging.getLogger(__name__)

LITELLM_STRATEGY = "litellm"
CHARACTERS_STRATEGY = "characters"


class LiteLLMTokenCounter:
    """LiteLLM-backed TokenCounter.

    Counts tokens with the tokenizer LiteLLM associates with the model,
    falling back to LiteLLM's own default tokenizer for unknown models.
    """

    def __init__(self, model: str) -> None:
        """Initialize the counter.

        Args:
            model: Model name passed to litellm.token_counter.
        """
        self._model = model

    @property
    def model(self) -> str:
        """Model name used to pick the tokenizer."""
        return self._model

    def count(self, text: str) -> int:
        """Count tokens in text.

        Args:
            text: Text to measure.

        Returns:
            Token count (0 for empty text).

        Raises:
            TokenCountError: The tokenizer failed.
        """
        if not text:
            return 0

        try:
            return int(litellm.token_counter(model=self._model, text=text))
        except Exception as e:
            logger.error("Token counting failed for model %s: %s", self._model, e)
            raise TokenCountError(str(e)) from e


class CharacterTokenEstimator:
    """Character-ratio TokenCounter that needs no tokenizer."""

    def __init__(self, chars_per_token: int = 4) -> None:
        """Initialize the estimator.

        Args:
            chars_per_token: Characters counted as one token.

        Raises:
            ValueError: chars_per_token is not positive.
        """
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self._chars_per_token = chars_per_token

    def count(self, text: str) -> int:
        """Estimate tokens in text, rounding up.

        Args:
            text: Text to measure.

        Returns:
            Estimated token count (0 for empty text).
        """
        return math.ceil(len(text) / self._chars_per_token)


def create_token_counter(
    config: TokenizerConfig,
) -> LiteLLMTokenCounter | CharacterTokenEstimator:
    """Create the TokenCounter selected by the tokenizer config.

    Args:
        config: Tokenizer configuration.

    Returns:
        TokenCounter instance.

    Raises:
        ValueError: Unknown strategy.
    """
    if config.strategy == LITELLM_STRATEGY:
        logger.debug("Using LiteLLM token counter: model=%s", config.model)
        return LiteLLMTokenCounter(config.model)
    if config.strategy == CHARACTERS_STRATEGY:
        logger.debug(
            "Using character token estimator: chars_per_token=%d",
            config.chars_per_token,
        )
        return CharacterTokenEstimator(config.chars_per_token)
    raise ValueError(f"Unknown tokenizer strategy: {config.strategy}")
