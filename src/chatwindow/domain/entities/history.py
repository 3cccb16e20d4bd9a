"""History entry entity and its token cost."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MessageRole(Enum):
    """Role of a conversational turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, value: "str | MessageRole") -> "MessageRole":
        """Parse a role string case-insensitively.

        Stored history may carry legacy capitalised roles ("User",
        "Assistant").

        Args:
            value: Role string or MessageRole.

        Returns:
            MessageRole.

        Raises:
            ValueError: If the value is not a known role.
        """
        if isinstance(value, MessageRole):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class MeasuredCost:
    """Token cost that was already measured upstream.

    Attributes:
        tokens: Cached token count.
    """

    tokens: int


@dataclass(frozen=True)
class UnmeasuredCost:
    """Token cost that still needs to be measured."""


TokenCost = MeasuredCost | UnmeasuredCost


def cost_from_cache(token_count: int | None) -> TokenCost:
    """Convert an optional cached token count into a TokenCost.

    Args:
        token_count: Cached count, or None if never measured.

    Returns:
        MeasuredCost when a count is available, otherwise UnmeasuredCost.
    """
    if token_count is None:
        return UnmeasuredCost()
    return MeasuredCost(tokens=token_count)


@dataclass(frozen=True)
class Attachment:
    """Attachment metadata on a referenced message."""

    content_type: str
    name: str | None = None


@dataclass(frozen=True)
class ReferencedMessage:
    """A message quoted by a reply or message link.

    Attributes:
        message_id: Platform message ID of the quoted message.
        author_display_name: Author display name (may be empty).
        author_username: Author handle, used when display name is empty.
        content: Quoted text.
        timestamp: When the quoted message was posted.
        is_forwarded: Whether the quoted message was a forward.
        embeds: Embed text captured with the quote.
        attachments: Attachment metadata.
        location_context: Pre-formatted <location> XML for the quote.
    """

    message_id: str
    author_display_name: str
    author_username: str
    content: str
    timestamp: datetime | None = None
    is_forwarded: bool = False
    embeds: str | None = None
    attachments: tuple[Attachment, ...] = ()
    location_context: str | None = None

    @property
    def author_name(self) -> str:
        """Display name, falling back to the username."""
        return self.author_display_name or self.author_username


@dataclass(frozen=True)
class ImageDescription:
    """Text description of an image attached to a message."""

    filename: str
    description: str


@dataclass(frozen=True)
class Reaction:
    """Reaction on a message.

    Attributes:
        emoji: Emoji text or custom emoji name.
        reactors: Display names of the reacting users.
        is_custom: Whether the emoji is a custom server emoji.
    """

    emoji: str
    reactors: tuple[str, ...] = ()
    is_custom: bool = False


@dataclass(frozen=True)
class MessageMetadata:
    """Structured metadata flattened into a message at format time."""

    referenced_messages: tuple[ReferencedMessage, ...] = ()
    image_descriptions: tuple[ImageDescription, ...] = ()
    embeds_xml: tuple[str, ...] = ()
    voice_transcripts: tuple[str, ...] = ()
    reactions: tuple[Reaction, ...] = ()


@dataclass(frozen=True)
class HistoryEntry:
    """One conversational turn.

    Attributes:
        role: Message role.
        content: Message text.
        created_at: When the message was posted.
        cost: Cached or pending token cost.
        persona_id: Persona ID of the user who sent the message.
        persona_name: Persona display name of the user.
        username: Platform handle, used to disambiguate name collisions.
        personality_name: AI personality that wrote an assistant message.
        is_forwarded: Whether the message was forwarded from another channel.
        message_ids: Platform message IDs (long messages may be chunked).
        metadata: Referenced messages, attachments and similar extras.
    """

    role: MessageRole
    content: str
    created_at: datetime | None = None
    cost: TokenCost = field(default_factory=UnmeasuredCost)
    persona_id: str | None = None
    persona_name: str | None = None
    username: str | None = None
    personality_name: str | None = None
    is_forwarded: bool = False
    message_ids: tuple[str, ...] = ()
    metadata: MessageMetadata = field(default_factory=MessageMetadata)
