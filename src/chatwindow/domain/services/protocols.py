"""Domain service protocols."""

from typing import Protocol


class TokenCounter(Protocol):
    """Token counting abstraction (tokenizer-independent).

    Implementations must be pure: the same text always yields the same
    count. Swapping implementations changes budget arithmetic but not the
    selection algorithm.
    """

    def count(self, text: str) -> int:
        """Count tokens in text.

        Args:
            text: Text to measure.

        Returns:
            Non-negative token count.
        """
        ...
