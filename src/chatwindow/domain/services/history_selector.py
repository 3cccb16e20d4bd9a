"""Current-channel history selection within a token budget."""

import logging
from datetime import datetime

from chatwindow.domain.entities.channel import ChannelHistoryGroup
from chatwindow.domain.entities.context import CrossChannelResult, SelectionResult
from chatwindow.domain.entities.history import HistoryEntry
from chatwindow.domain.services.cross_channel import serialize_cross_channel_history
from chatwindow.domain.services.message_formatter import (
    estimate_chars_as_tokens,
    format_history,
    format_time_gap,
    is_rendered,
)
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import (
    TimeFormatter,
    TimeGapConfig,
    parse_timestamp,
)
from chatwindow.domain.services.token_cost import resolve_entry_cost

logger = logging.getLogger(__name__)


def _time_gap_cost(marker: str, counter: TokenCounter, fast_estimate: bool) -> int:
    # The marker takes a line of its own.
    line = f"{marker}\n"
    if fast_estimate:
        return estimate_chars_as_tokens(len(line))
    return counter.count(line)


def _fit_cross_channel(
    groups: list[ChannelHistoryGroup],
    speaker_name: str,
    remaining: int,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
    fast_estimate: bool,
) -> tuple[CrossChannelResult, int]:
    """Serialize cross-channel history so its measured size fits remaining.

    Selection works on estimates; the rendered block is measured with the
    counter and, on overshoot, selection is retried with the budget reduced
    by the overshoot.
    """
    cross_budget = remaining
    while cross_budget > 0:
        result = serialize_cross_channel_history(
            groups,
            speaker_name,
            cross_budget,
            counter=counter,
            time_formatter=time_formatter,
            fast_estimate=fast_estimate,
        )
        if not result.xml:
            break
        tokens = counter.count(result.xml)
        if tokens <= remaining:
            return result, tokens
        logger.debug(
            "Cross-channel history overshot budget (%d > %d), retrying",
            tokens,
            remaining,
        )
        cross_budget -= tokens - remaining
    return CrossChannelResult(), 0


def select_and_serialize_history(
    entries: list[HistoryEntry] | None,
    speaker_name: str,
    budget: int,
    cross_channel_groups: list[ChannelHistoryGroup] | None = None,
    *,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
    time_gap: TimeGapConfig | None = None,
    fast_estimate: bool = False,
) -> SelectionResult:
    """Select the newest history that fits the budget and serialize it.

    Entries are taken newest-first until the next one would overflow the
    budget. Selection stops there: an older, cheaper entry is never picked
    past one that did not fit, so the kept history has no gaps. A <time_gap>
    marker is charged together with the older of the two messages it
    separates, so history_tokens_used covers every line of the block.

    Leftover budget goes to cross-channel history, whose block is appended
    after the current-channel messages. Cross-channel history is offered
    even when the current channel has no history yet.

    Args:
        entries: Current-channel history, oldest first.
        speaker_name: Name of the personality answering.
        budget: Tokens available for history.
        cross_channel_groups: Other-channel history, most recent channel first.
        counter: Token counter.
        time_formatter: Timestamp formatter.
        time_gap: Optional gap-marker threshold for the current channel.
        fast_estimate: Price unmeasured entries with the character
            approximation instead of the counter.

    Returns:
        SelectionResult.
    """
    entries = entries or []
    groups = cross_channel_groups or []

    if not entries and not groups:
        return SelectionResult()

    if budget <= 0:
        logger.debug("No history budget; dropping %d messages", len(entries))
        return SelectionResult(messages_dropped=len(entries))

    selected: list[HistoryEntry] = []
    tokens_used = 0
    # Time of the oldest selected timestamped message
    anchor: datetime | None = None
    for entry in reversed(entries):
        cost = resolve_entry_cost(
            entry,
            speaker_name,
            counter,
            time_formatter,
            fast_estimate=fast_estimate,
        )
        created_at = parse_timestamp(entry.created_at) if is_rendered(entry) else None
        marker = format_time_gap(created_at, anchor, time_gap)
        if marker:
            cost += _time_gap_cost(marker, counter, fast_estimate)
        if tokens_used + cost > budget:
            logger.debug(
                "Stopping history selection: would exceed budget (%d > %d)",
                tokens_used + cost,
                budget,
            )
            break
        selected.append(entry)
        tokens_used += cost
        if created_at is not None:
            anchor = created_at
    selected.reverse()

    serialized = format_history(selected, speaker_name, time_formatter, time_gap)
    logger.debug(
        "Selected %d/%d history messages (%d tokens, budget: %d)",
        len(selected),
        len(entries),
        tokens_used,
        budget,
    )

    cross = CrossChannelResult()
    remaining = budget - tokens_used
    if groups and remaining > 0:
        cross, cross_tokens = _fit_cross_channel(
            groups,
            speaker_name,
            remaining,
            counter,
            time_formatter,
            fast_estimate,
        )
        if cross.xml:
            tokens_used += cross_tokens
            serialized = f"{serialized}\n{cross.xml}" if serialized else cross.xml
            logger.info(
                "Added cross-channel history (%d messages, %d tokens, %d channels)",
                cross.messages_included,
                cross_tokens,
                len(groups),
            )

    return SelectionResult(
        selected_history=selected,
        serialized_history=serialized,
        messages_included=len(selected),
        messages_dropped=len(entries) - len(selected),
        history_tokens_used=tokens_used,
        cross_channel_messages_included=cross.messages_included,
    )
