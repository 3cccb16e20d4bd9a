"""Channel environment and cross-channel history entities."""

from dataclasses import dataclass, field

from chatwindow.domain.entities.history import HistoryEntry


@dataclass(frozen=True)
class GuildRef:
    """Server a channel belongs to."""

    id: str
    name: str


@dataclass(frozen=True)
class ChannelRef:
    """Channel identity.

    Attributes:
        id: Platform-specific channel ID.
        name: Channel name.
        type: Channel type ("text", "voice", "forum", ...).
    """

    id: str
    name: str
    type: str = "text"


@dataclass(frozen=True)
class ThreadRef:
    """Thread inside a channel."""

    id: str
    name: str


@dataclass(frozen=True)
class ChannelEnvironment:
    """Where a conversation takes place.

    Attributes:
        type: "guild" for server channels, "dm" for direct messages.
        channel: Channel identity (the parent channel for threads).
        guild: Server, for guild channels.
        thread: Thread, when the conversation is inside one.
    """

    type: str
    channel: ChannelRef
    guild: GuildRef | None = None
    thread: ThreadRef | None = None

    @property
    def is_dm(self) -> bool:
        """Whether this is a direct-message channel."""
        return self.type == "dm"


@dataclass(frozen=True)
class ChannelHistoryGroup:
    """History from one other channel.

    Attributes:
        environment: Channel environment, used for the location header.
        messages: Entries in chronological order (oldest first).
    """

    environment: ChannelEnvironment
    messages: list[HistoryEntry] = field(default_factory=list)
