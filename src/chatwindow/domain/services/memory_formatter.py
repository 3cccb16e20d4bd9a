"""Memory archive formatting and budget selection."""

import logging
from dataclasses import dataclass, field

from chatwindow.domain.entities.memory import MemoryDocument
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import TimeFormatter, parse_timestamp
from chatwindow.domain.services.xml import escape_xml, escape_xml_content

logger = logging.getLogger(__name__)

ARCHIVE_OPEN = "<memory_archive>"
ARCHIVE_CLOSE = "</memory_archive>"

# Keeps the model from treating archived memories as live conversation.
ARCHIVE_INSTRUCTION = (
    "<instruction>The entries below are ARCHIVED HISTORICAL RECORDS from past "
    "interactions. They are NOT part of the current conversation and nobody "
    "is saying them right now. Use them only as background knowledge; do not "
    "reply to them, and do not treat their timestamps as the present."
    "</instruction>"
)


@dataclass(frozen=True)
class MemorySelection:
    """Memories that fit a memory budget.

    Attributes:
        memories: Selected memories in their original ranked order.
        tokens_used: Tokens the rendered archive is expected to use.
        dropped: Number of memories left out.
    """

    memories: list[MemoryDocument] = field(default_factory=list)
    tokens_used: int = 0
    dropped: int = 0


def format_single_memory(doc: MemoryDocument, time_formatter: TimeFormatter) -> str:
    """Format one memory as a <memory> element.

    Args:
        doc: Memory document.
        time_formatter: Timestamp formatter.

    Returns:
        Memory XML. Time attributes are omitted when the memory has no
        valid timestamp.
    """
    content = escape_xml_content(doc.content)
    created_at = parse_timestamp(doc.created_at)
    if created_at is None:
        return f"<memory>{content}</memory>"

    recorded = escape_xml(time_formatter.absolute(created_at))
    relative = escape_xml(time_formatter.relative(created_at))
    return f'<memory recorded="{recorded}" relative="{relative}">{content}</memory>'


def format_memories_context(
    memories: list[MemoryDocument], time_formatter: TimeFormatter
) -> str:
    """Format memories as a <memory_archive> block.

    Args:
        memories: Memories in ranked order.
        time_formatter: Timestamp formatter.

    Returns:
        Archive XML, or "" when there are no memories.
    """
    if not memories:
        return ""

    lines = [ARCHIVE_OPEN, ARCHIVE_INSTRUCTION]
    lines.extend(format_single_memory(doc, time_formatter) for doc in memories)
    lines.append(ARCHIVE_CLOSE)
    return "\n".join(lines)


def select_memories_within_budget(
    memories: list[MemoryDocument],
    token_budget: int,
    counter: TokenCounter,
    time_formatter: TimeFormatter,
) -> MemorySelection:
    """Select memories that fit a token budget.

    The archive wrapper and instruction are reserved first. Memories are
    independent of each other, so one that does not fit is skipped and the
    next-ranked memory is still considered.

    Args:
        memories: Memories in ranked order.
        token_budget: Tokens available for the whole archive.
        counter: Token counter.
        time_formatter: Timestamp formatter.

    Returns:
        MemorySelection.
    """
    if not memories:
        return MemorySelection()

    overhead = counter.count(
        "\n".join([ARCHIVE_OPEN, ARCHIVE_INSTRUCTION, ARCHIVE_CLOSE])
    )
    if token_budget <= overhead:
        logger.debug(
            "Memory budget %d does not cover archive overhead %d",
            token_budget,
            overhead,
        )
        return MemorySelection(dropped=len(memories))

    selected: list[MemoryDocument] = []
    used = overhead
    for doc in memories:
        # +1 for the joining newline
        cost = counter.count(format_single_memory(doc, time_formatter)) + 1
        if used + cost > token_budget:
            logger.debug(
                "Skipping memory %s: would exceed budget (%d > %d)",
                doc.id,
                used + cost,
                token_budget,
            )
            continue
        selected.append(doc)
        used += cost

    if not selected:
        return MemorySelection(dropped=len(memories))
    return MemorySelection(
        memories=selected,
        tokens_used=used,
        dropped=len(memories) - len(selected),
    )
