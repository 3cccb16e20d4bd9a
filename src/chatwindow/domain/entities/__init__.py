"""Domain entities."""

from chatwindow.domain.entities.budget import TokenBudget
from chatwindow.domain.entities.channel import (
    ChannelEnvironment,
    ChannelHistoryGroup,
    ChannelRef,
    GuildRef,
    ThreadRef,
)
from chatwindow.domain.entities.context import (
    AssembledContext,
    ContextInput,
    CrossChannelResult,
    SelectionMetadata,
    SelectionResult,
)
from chatwindow.domain.entities.history import (
    Attachment,
    HistoryEntry,
    ImageDescription,
    MeasuredCost,
    MessageMetadata,
    MessageRole,
    Reaction,
    ReferencedMessage,
    TokenCost,
    UnmeasuredCost,
    cost_from_cache,
)
from chatwindow.domain.entities.memory import MemoryDocument
from chatwindow.domain.entities.participant import (
    GuildInfo,
    ParticipantInfo,
    ParticipantList,
    Participants,
)

__all__ = [
    "AssembledContext",
    "Attachment",
    "ChannelEnvironment",
    "ChannelHistoryGroup",
    "ChannelRef",
    "ContextInput",
    "CrossChannelResult",
    "GuildInfo",
    "GuildRef",
    "HistoryEntry",
    "ImageDescription",
    "MeasuredCost",
    "MemoryDocument",
    "MessageMetadata",
    "MessageRole",
    "ParticipantInfo",
    "ParticipantList",
    "Participants",
    "Reaction",
    "ReferencedMessage",
    "SelectionMetadata",
    "SelectionResult",
    "ThreadRef",
    "TokenBudget",
    "TokenCost",
    "UnmeasuredCost",
    "cost_from_cache",
]
