"""Token cost resolution for history entries."""

from chatwindow.domain.entities.history import HistoryEntry, MeasuredCost
from chatwindow.domain.services.message_formatter import (
    estimate_chars_as_tokens,
    estimate_entry_chars,
    format_history_entry,
)
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import TimeFormatter


def resolve_entry_cost(
    entry: HistoryEntry,
    speaker_name: str,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
    *,
    fast_estimate: bool = False,
) -> int:
    """Resolve the token cost of a history entry.

    A measured cost is used as-is. Otherwise the entry is formatted and
    measured with the counter, or, with fast_estimate, approximated from
    its formatted length at four characters per token (rounded up).

    Args:
        entry: History entry.
        speaker_name: Name of the personality answering.
        counter: Token counter.
        time_formatter: Timestamp formatter.
        fast_estimate: Use the character approximation instead of the counter.

    Returns:
        Token cost.
    """
    if isinstance(entry.cost, MeasuredCost):
        return entry.cost.tokens
    if fast_estimate:
        return estimate_chars_as_tokens(
            estimate_entry_chars(entry, speaker_name, time_formatter)
        )
    formatted = format_history_entry(entry, speaker_name, time_formatter)
    if not formatted:
        return 0
    return counter.count(formatted)
