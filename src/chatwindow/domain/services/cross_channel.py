"""Cross-channel history selection and serialization."""

import logging

from chatwindow.domain.entities.channel import ChannelHistoryGroup
from chatwindow.domain.entities.context import CrossChannelResult
from chatwindow.domain.entities.history import HistoryEntry
from chatwindow.domain.services.location_formatter import format_location
from chatwindow.domain.services.message_formatter import (
    estimate_chars_as_tokens,
    format_history,
)
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import TimeFormatter
from chatwindow.domain.services.token_cost import resolve_entry_cost

logger = logging.getLogger(__name__)

CONTAINER_OPEN = "<cross_channel_history>"
CONTAINER_CLOSE = "</cross_channel_history>"
GROUP_OPEN = "<channel_history>"
GROUP_CLOSE = "</channel_history>"


def _group_header(group: ChannelHistoryGroup) -> str:
    return f"{GROUP_OPEN}\n{format_location(group.environment)}"


def _group_overhead(group: ChannelHistoryGroup) -> int:
    # Character approximation: computed once per group and re-measured at
    # the top level, so a slight overcount is acceptable.
    return estimate_chars_as_tokens(len(f"{_group_header(group)}\n\n{GROUP_CLOSE}"))


def _render_group(
    group: ChannelHistoryGroup,
    messages: list[HistoryEntry],
    speaker_name: str,
    time_formatter: TimeFormatter,
) -> str:
    body = format_history(messages, speaker_name, time_formatter)
    return f"{_group_header(group)}\n{body}\n{GROUP_CLOSE}"


def serialize_cross_channel_history(
    groups: list[ChannelHistoryGroup] | None,
    speaker_name: str,
    token_budget: int,
    *,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
    fast_estimate: bool = False,
) -> CrossChannelResult:
    """Select and serialize history from other channels within a budget.

    Groups are visited in the given order (most recently active channel
    first). Within a group, messages are taken newest-first until the next
    one would overflow the running total across all groups; older messages
    of that group are then never considered. A group whose overhead alone
    does not fit is skipped, but later groups are still tried.

    Args:
        groups: Other-channel history groups, most recent channel first.
        speaker_name: Name of the personality answering.
        token_budget: Tokens available for the whole block.
        counter: Token counter.
        time_formatter: Timestamp formatter.
        fast_estimate: Price unmeasured messages with the character
            approximation.

    Returns:
        CrossChannelResult; empty when nothing fits.
    """
    if not groups or token_budget <= 0:
        return CrossChannelResult()

    container_overhead = counter.count(f"{CONTAINER_OPEN}\n{CONTAINER_CLOSE}")
    available = token_budget - container_overhead
    if available <= 0:
        logger.debug(
            "Cross-channel budget %d does not cover container overhead %d",
            token_budget,
            container_overhead,
        )
        return CrossChannelResult()

    rendered: list[str] = []
    used = 0
    messages_included = 0

    for group in groups:
        if used >= available:
            break

        overhead = _group_overhead(group)
        if used + overhead > available:
            logger.debug(
                "Skipping channel %s: overhead %d exceeds remaining %d",
                group.environment.channel.name,
                overhead,
                available - used,
            )
            continue

        group_used = overhead
        selected: list[HistoryEntry] = []
        for entry in reversed(group.messages):
            cost = resolve_entry_cost(
                entry,
                speaker_name,
                counter,
                time_formatter,
                fast_estimate=fast_estimate,
            )
            if used + group_used + cost > available:
                break
            selected.append(entry)
            group_used += cost

        if not selected:
            continue

        selected.reverse()
        rendered.append(_render_group(group, selected, speaker_name, time_formatter))
        used += group_used
        messages_included += len(selected)

    if not rendered:
        return CrossChannelResult()

    xml = "\n".join([CONTAINER_OPEN, *rendered, CONTAINER_CLOSE])
    logger.debug(
        "Cross-channel history: %d messages from %d channels (~%d tokens)",
        messages_included,
        len(rendered),
        used + container_overhead,
    )
    return CrossChannelResult(xml=xml, messages_included=messages_included)
