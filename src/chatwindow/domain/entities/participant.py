"""Participant entity."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class GuildInfo:
    """Server-specific member metadata.

    Attributes:
        roles: Role names.
        display_color: Role colour, e.g. "#FF00FF".
        joined_at: When the member joined the server.
    """

    roles: tuple[str, ...] = ()
    display_color: str | None = None
    joined_at: datetime | str | None = None


@dataclass(frozen=True)
class ParticipantInfo:
    """Profile of a conversation participant.

    Attributes:
        persona_id: Stable persona ID, referenced by from_id in the chat log.
        content: Free-text "about" section written by the user.
        is_active: Whether this participant sent the current message.
        preferred_name: Display name overriding the participant key.
        pronouns: Pronouns, e.g. "she/her".
        guild_info: Server metadata.
    """

    persona_id: str
    content: str = ""
    is_active: bool = False
    preferred_name: str | None = None
    pronouns: str | None = None
    guild_info: GuildInfo | None = None


Participants = list[tuple[str, ParticipantInfo]]
"""Ordered (key, info) pairs. The order is the render order."""


@dataclass(frozen=True)
class ParticipantList:
    """Builder-friendly wrapper producing ordered participant pairs."""

    items: Participants = field(default_factory=list)

    def with_participant(self, key: str, info: ParticipantInfo) -> "ParticipantList":
        """Return a new list with the participant set.

        A key already present keeps its position and takes the new info.
        """
        items = list(self.items)
        for i, (existing_key, _) in enumerate(items):
            if existing_key == key:
                items[i] = (key, info)
                return ParticipantList(items=items)
        items.append((key, info))
        return ParticipantList(items=items)
