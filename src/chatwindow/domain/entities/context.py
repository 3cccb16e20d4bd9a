"""Context assembly input and result entities."""

from dataclasses import dataclass, field

from chatwindow.domain.entities.budget import TokenBudget
from chatwindow.domain.entities.channel import ChannelHistoryGroup
from chatwindow.domain.entities.history import HistoryEntry
from chatwindow.domain.entities.memory import MemoryDocument
from chatwindow.domain.entities.participant import Participants

RECENCY_STRATEGY = "recency"


@dataclass(frozen=True)
class CrossChannelResult:
    """Serialized cross-channel history.

    Attributes:
        xml: <cross_channel_history> block, or "" when nothing fit.
        messages_included: Messages included across all groups.
    """

    xml: str = ""
    messages_included: int = 0


@dataclass(frozen=True)
class SelectionResult:
    """Result of selecting current-channel history within a budget.

    Attributes:
        selected_history: Surviving entries, oldest first.
        serialized_history: Rendered history (current channel, then any
            cross-channel block).
        messages_included: Current-channel entries included.
        messages_dropped: Current-channel entries dropped.
        history_tokens_used: Tokens consumed, cross-channel included.
        cross_channel_messages_included: Cross-channel entries included.
    """

    selected_history: list[HistoryEntry] = field(default_factory=list)
    serialized_history: str = ""
    messages_included: int = 0
    messages_dropped: int = 0
    history_tokens_used: int = 0
    cross_channel_messages_included: int = 0


@dataclass(frozen=True)
class SelectionMetadata:
    """Selection counters exposed for diagnostics.

    Attributes:
        strategy: Selection strategy identifier.
        messages_included: Current-channel entries included.
        messages_dropped: Current-channel entries dropped.
        cross_channel_messages_included: Cross-channel entries included.
        memories_included: Memories rendered into the archive.
        memories_dropped: Memories pruned by the memory cap.
    """

    strategy: str = RECENCY_STRATEGY
    messages_included: int = 0
    messages_dropped: int = 0
    cross_channel_messages_included: int = 0
    memories_included: int = 0
    memories_dropped: int = 0


@dataclass(frozen=True)
class ContextInput:
    """Everything needed to assemble one turn's context.

    Attributes:
        system_prompt: Rendered system prompt (without history).
        current_message: Rendered current user message.
        context_window_tokens: Token ceiling for the whole prompt.
        speaker_name: Name of the AI personality answering.
        history: Current-channel history, oldest first.
        cross_channel_groups: Other-channel history, most recent channel first.
        memories: Retrieved memories in ranked order.
        participants: Ordered (key, info) participant pairs.
        active_persona_name: Name of the user who sent the current message.
        max_memory_tokens: Optional cap for the memory archive.
    """

    system_prompt: str
    current_message: str
    context_window_tokens: int
    speaker_name: str
    history: list[HistoryEntry] = field(default_factory=list)
    cross_channel_groups: list[ChannelHistoryGroup] = field(default_factory=list)
    memories: list[MemoryDocument] = field(default_factory=list)
    participants: Participants = field(default_factory=list)
    active_persona_name: str | None = None
    max_memory_tokens: int | None = None


@dataclass(frozen=True)
class AssembledContext:
    """Assembled context handed to the prompt-building step.

    Attributes:
        system_prompt: System prompt as supplied.
        current_message: Current user message as supplied.
        selected_history: Current-channel entries that fit, oldest first.
        serialized_history: XML for the chat log.
        participants_context: <participants> block ("" when none).
        memory_context: <memory_archive> block ("" when none).
        token_budget: Budget breakdown including actual history usage.
        metadata: Selection counters.
    """

    system_prompt: str
    current_message: str
    selected_history: list[HistoryEntry]
    serialized_history: str
    participants_context: str
    memory_context: str
    token_budget: TokenBudget
    metadata: SelectionMetadata
