"""YAML conversation fixtures.

A fixture describes one turn: the current message, the current-channel
history, other-channel history, retrieved memories and participants.
System prompt and token ceiling come from the application config.

Example::

    speaker_name: Myao
    current_message: "What did we decide yesterday?"
    active_persona_name: Alice
    history:
      - role: user
        content: "Let's ship on Friday"
        created_at: 2024-01-15T14:30:00Z
        persona_id: p-alice
        persona_name: Alice
        tokens: 12
    cross_channel:
      - location:
          type: guild
          guild: {id: g1, name: Cat Cafe}
          channel: {id: c2, name: random}
        messages:
          - {role: user, content: "hi", persona_name: Bob}
    memories:
      - {content: "Alice likes tea", created_at: 2023-12-01T00:00:00Z}
    participants:
      - key: Alice
        persona_id: p-alice
        active: true
        about: "Backend developer"
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from chatwindow.config import ConfigError
from chatwindow.domain.entities import (
    Attachment,
    ChannelEnvironment,
    ChannelHistoryGroup,
    ChannelRef,
    ContextInput,
    GuildInfo,
    GuildRef,
    HistoryEntry,
    ImageDescription,
    MemoryDocument,
    MessageMetadata,
    MessageRole,
    ParticipantInfo,
    ParticipantList,
    Reaction,
    ReferencedMessage,
    ThreadRef,
    cost_from_cache,
)
from chatwindow.domain.services.location_formatter import format_location
from chatwindow.domain.services.time_format import parse_timestamp

logger = logging.getLogger(__name__)


class FixtureError(ConfigError):
    """Malformed conversation fixture."""


def _require(data: dict[str, Any], field: str, parent: str) -> Any:
    if not isinstance(data, dict):
        raise FixtureError(f"'{parent}' must be a mapping")
    if field not in data or data[field] is None:
        raise FixtureError(f"Required field '{parent}.{field}' is missing")
    return data[field]


def _as_list(value: Any, path: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise FixtureError(f"'{path}' must be a list")
    return value


def _str_tuple(value: Any, path: str) -> tuple[str, ...]:
    return tuple(str(item) for item in _as_list(value, path))


def _load_environment(data: dict[str, Any], path: str) -> ChannelEnvironment:
    channel_data = _require(data, "channel", path)
    channel = ChannelRef(
        id=str(_require(channel_data, "id", f"{path}.channel")),
        name=str(_require(channel_data, "name", f"{path}.channel")),
        type=channel_data.get("type", "text"),
    )

    guild = None
    guild_data = data.get("guild")
    if guild_data:
        guild = GuildRef(
            id=str(_require(guild_data, "id", f"{path}.guild")),
            name=str(_require(guild_data, "name", f"{path}.guild")),
        )

    thread = None
    thread_data = data.get("thread")
    if thread_data:
        thread = ThreadRef(
            id=str(_require(thread_data, "id", f"{path}.thread")),
            name=str(_require(thread_data, "name", f"{path}.thread")),
        )

    env_type = data.get("type", "guild" if guild else "dm")
    if env_type not in ("guild", "dm"):
        raise FixtureError(f"'{path}.type' must be 'guild' or 'dm'")

    return ChannelEnvironment(type=env_type, channel=channel, guild=guild, thread=thread)


def _load_reference(data: dict[str, Any], path: str) -> ReferencedMessage:
    location = data.get("location")
    return ReferencedMessage(
        message_id=str(_require(data, "message_id", path)),
        author_display_name=data.get("author_display_name", ""),
        author_username=data.get("author_username", ""),
        content=data.get("content", ""),
        timestamp=parse_timestamp(data.get("timestamp")),
        is_forwarded=bool(data.get("is_forwarded", False)),
        embeds=data.get("embeds"),
        attachments=tuple(
            Attachment(
                content_type=_require(item, "content_type", f"{path}.attachments"),
                name=item.get("name"),
            )
            for item in _as_list(data.get("attachments"), f"{path}.attachments")
        ),
        location_context=(
            format_location(_load_environment(location, f"{path}.location"))
            if location
            else None
        ),
    )


def _load_metadata(data: dict[str, Any], path: str) -> MessageMetadata:
    return MessageMetadata(
        referenced_messages=tuple(
            _load_reference(item, f"{path}.referenced_messages[{i}]")
            for i, item in enumerate(
                _as_list(data.get("referenced_messages"), f"{path}.referenced_messages")
            )
        ),
        image_descriptions=tuple(
            ImageDescription(
                filename=str(_require(item, "filename", f"{path}.image_descriptions")),
                description=str(
                    _require(item, "description", f"{path}.image_descriptions")
                ),
            )
            for item in _as_list(
                data.get("image_descriptions"), f"{path}.image_descriptions"
            )
        ),
        embeds_xml=_str_tuple(data.get("embeds_xml"), f"{path}.embeds_xml"),
        voice_transcripts=_str_tuple(
            data.get("voice_transcripts"), f"{path}.voice_transcripts"
        ),
        reactions=tuple(
            Reaction(
                emoji=str(_require(item, "emoji", f"{path}.reactions")),
                reactors=_str_tuple(item.get("reactors"), f"{path}.reactions"),
                is_custom=bool(item.get("is_custom", False)),
            )
            for item in _as_list(data.get("reactions"), f"{path}.reactions")
        ),
    )


def _load_entry(data: dict[str, Any], path: str) -> HistoryEntry:
    try:
        role = MessageRole.parse(_require(data, "role", path))
    except ValueError as e:
        raise FixtureError(f"Unknown role in '{path}': {data.get('role')}") from e

    content = _require(data, "content", path)
    message_ids = data.get("message_ids")
    if message_ids is None and data.get("message_id") is not None:
        message_ids = [data["message_id"]]

    return HistoryEntry(
        role=role,
        content=str(content),
        created_at=parse_timestamp(data.get("created_at")),
        cost=cost_from_cache(data.get("tokens")),
        persona_id=data.get("persona_id"),
        persona_name=data.get("persona_name"),
        username=data.get("username"),
        personality_name=data.get("personality_name"),
        is_forwarded=bool(data.get("is_forwarded", False)),
        message_ids=_str_tuple(message_ids, f"{path}.message_ids"),
        metadata=_load_metadata(data, path),
    )


def _load_entries(value: Any, path: str) -> list[HistoryEntry]:
    return [
        _load_entry(item, f"{path}[{i}]")
        for i, item in enumerate(_as_list(value, path))
    ]


def _load_participants(value: Any) -> ParticipantList:
    participants = ParticipantList()
    for i, item in enumerate(_as_list(value, "participants")):
        path = f"participants[{i}]"
        guild_info = None
        guild_data = item.get("guild_info") if isinstance(item, dict) else None
        if guild_data:
            guild_info = GuildInfo(
                roles=_str_tuple(guild_data.get("roles"), f"{path}.guild_info.roles"),
                display_color=guild_data.get("color"),
                joined_at=guild_data.get("joined_at"),
            )
        participants = participants.with_participant(
            str(_require(item, "key", path)),
            ParticipantInfo(
                persona_id=str(_require(item, "persona_id", path)),
                content=item.get("about", "") or "",
                is_active=bool(item.get("active", False)),
                preferred_name=item.get("preferred_name"),
                pronouns=item.get("pronouns"),
                guild_info=guild_info,
            ),
        )
    return participants


def load_conversation(
    path: str | Path,
    *,
    system_prompt: str,
    context_window_tokens: int,
    max_memory_tokens: int | None = None,
) -> ContextInput:
    """Load a conversation fixture into a ContextInput.

    Args:
        path: Fixture YAML path.
        system_prompt: System prompt from the persona config.
        context_window_tokens: Token ceiling.
        max_memory_tokens: Optional memory cap.

    Returns:
        ContextInput.

    Raises:
        FileNotFoundError: The file does not exist.
        FixtureError: The fixture is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Conversation file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FixtureError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise FixtureError("Conversation file must contain a mapping")

    groups = []
    for i, item in enumerate(_as_list(data.get("cross_channel"), "cross_channel")):
        group_path = f"cross_channel[{i}]"
        groups.append(
            ChannelHistoryGroup(
                environment=_load_environment(
                    _require(item, "location", group_path), f"{group_path}.location"
                ),
                messages=_load_entries(item.get("messages"), f"{group_path}.messages"),
            )
        )

    memories = [
        MemoryDocument(
            content=str(_require(item, "content", f"memories[{i}]")),
            id=item.get("id"),
            created_at=item.get("created_at"),
            score=item.get("score"),
        )
        for i, item in enumerate(_as_list(data.get("memories"), "memories"))
    ]

    context_input = ContextInput(
        system_prompt=system_prompt,
        current_message=str(_require(data, "current_message", "conversation")),
        context_window_tokens=context_window_tokens,
        speaker_name=str(_require(data, "speaker_name", "conversation")),
        history=_load_entries(data.get("history"), "history"),
        cross_channel_groups=groups,
        memories=memories,
        participants=_load_participants(data.get("participants")).items,
        active_persona_name=data.get("active_persona_name"),
        max_memory_tokens=max_memory_tokens,
    )
    logger.debug(
        "Loaded conversation %s: %d history, %d cross-channel groups, "
        "%d memories, %d participants",
        path,
        len(context_input.history),
        len(context_input.cross_channel_groups),
        len(context_input.memories),
        len(context_input.participants),
    )
    return context_input
