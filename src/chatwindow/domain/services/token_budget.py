"""Token budget calculation."""

from chatwindow.domain.entities.budget import TokenBudget
from chatwindow.domain.entities.memory import MemoryDocument
from chatwindow.domain.services.memory_formatter import format_memories_context
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import TimeFormatter


def calculate_history_budget(
    context_window_tokens: int,
    system_prompt_tokens: int,
    current_message_tokens: int,
    memory_tokens: int,
) -> int:
    """Tokens left for history once everything else is reserved.

    Returns:
        Remaining tokens, clamped to zero.
    """
    return max(
        0,
        context_window_tokens
        - system_prompt_tokens
        - current_message_tokens
        - memory_tokens,
    )


def compute_budget(
    context_window_tokens: int,
    system_prompt: str,
    current_message: str,
    memories: list[MemoryDocument] | None,
    *,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
) -> TokenBudget:
    """Compute the token budget for one context assembly.

    Memory tokens are measured on the fully rendered archive, wrapper and
    instruction included, so they match what ends up in the prompt.

    Args:
        context_window_tokens: Token ceiling.
        system_prompt: Rendered system prompt.
        current_message: Rendered current message.
        memories: Memories to render, or None.
        counter: Token counter.
        time_formatter: Timestamp formatter used to render memories.

    Returns:
        TokenBudget with history_tokens_used set to 0.
    """
    system_prompt_tokens = counter.count(system_prompt)
    current_message_tokens = counter.count(current_message)
    memory_tokens = (
        counter.count(format_memories_context(memories, time_formatter))
        if memories
        else 0
    )

    return TokenBudget(
        context_window_tokens=context_window_tokens,
        system_prompt_tokens=system_prompt_tokens,
        current_message_tokens=current_message_tokens,
        memory_tokens=memory_tokens,
        history_budget=calculate_history_budget(
            context_window_tokens,
            system_prompt_tokens,
            current_message_tokens,
            memory_tokens,
        ),
    )
