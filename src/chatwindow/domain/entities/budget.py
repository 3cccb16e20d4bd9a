"""Token budget entity."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TokenBudget:
    """Token allocation for one context assembly.

    Attributes:
        context_window_tokens: Caller-supplied ceiling.
        system_prompt_tokens: Tokens used by the system prompt.
        current_message_tokens: Tokens used by the current user message.
        memory_tokens: Tokens used by the rendered memory archive.
        history_budget: Tokens left for history (never negative).
        history_tokens_used: Tokens consumed by the selected history.
    """

    context_window_tokens: int
    system_prompt_tokens: int
    current_message_tokens: int
    memory_tokens: int
    history_budget: int
    history_tokens_used: int = 0

    def __post_init__(self) -> None:
        """Validate the budget invariants."""
        if self.history_budget < 0:
            raise ValueError(f"history_budget must be >= 0: {self.history_budget}")
        if self.history_tokens_used > self.history_budget:
            raise ValueError(
                f"history_tokens_used ({self.history_tokens_used}) exceeds "
                f"history_budget ({self.history_budget})"
            )

    def with_history_usage(self, tokens_used: int) -> "TokenBudget":
        """Return a copy carrying the actual history usage.

        Args:
            tokens_used: Tokens consumed by the selected history.

        Returns:
            New TokenBudget.
        """
        return replace(self, history_tokens_used=tokens_used)
