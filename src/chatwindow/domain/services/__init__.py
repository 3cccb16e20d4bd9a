"""Domain services."""

from chatwindow.domain.services.cross_channel import serialize_cross_channel_history
from chatwindow.domain.services.history_selector import select_and_serialize_history
from chatwindow.domain.services.memory_formatter import (
    MemorySelection,
    format_memories_context,
    format_single_memory,
    select_memories_within_budget,
)
from chatwindow.domain.services.message_formatter import (
    format_history,
    format_history_entry,
)
from chatwindow.domain.services.participant_formatter import (
    format_participants_context,
)
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import (
    TimeFormatter,
    TimeGapConfig,
    parse_timestamp,
)
from chatwindow.domain.services.token_budget import (
    calculate_history_budget,
    compute_budget,
)

__all__ = [
    "MemorySelection",
    "TimeFormatter",
    "TimeGapConfig",
    "TokenCounter",
    "calculate_history_budget",
    "compute_budget",
    "format_history",
    "format_history_entry",
    "format_memories_context",
    "format_participants_context",
    "format_single_memory",
    "parse_timestamp",
    "select_and_serialize_history",
    "select_memories_within_budget",
    "serialize_cross_channel_history",
]
