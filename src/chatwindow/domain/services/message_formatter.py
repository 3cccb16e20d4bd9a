"""Message formatting for the chat log and cross-channel history.

Each history entry renders as a single <message> element:

    <message from="Alice" from_id="persona-1" role="user" t="...">text</message>

Referenced messages, image descriptions, embeds, voice transcripts and
reactions are flattened into the element body after the text.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from chatwindow.domain.entities.history import (
    HistoryEntry,
    MessageMetadata,
    MessageRole,
    ReferencedMessage,
)
from chatwindow.domain.services.time_format import (
    TimeFormatter,
    TimeGapConfig,
    format_duration,
    parse_timestamp,
)
from chatwindow.domain.services.xml import escape_xml, escape_xml_content

CHARS_PER_TOKEN = 4
DEFAULT_USER_NAME = "User"

# SYSTEM turns carry no speaker and are left out of the chat log.
ROLE_LABELS: dict[MessageRole, str | None] = {
    MessageRole.SYSTEM: None,
    MessageRole.USER: "user",
    MessageRole.ASSISTANT: "assistant",
}

# Location strings in this shape predate XML locations and are not rendered.
LEGACY_LOCATION_MARKERS = ("**Server**", "This conversation is taking place")


def collect_personality_names(
    entries: Iterable[HistoryEntry], speaker_name: str
) -> set[str]:
    """Collect every AI personality name present in the history.

    Args:
        entries: History entries.
        speaker_name: Name of the personality answering.

    Returns:
        Set containing speaker_name and every assistant personality name.
    """
    names = {speaker_name}
    for entry in entries:
        if entry.role is MessageRole.ASSISTANT and entry.personality_name:
            names.add(entry.personality_name)
    return names


def collect_history_message_ids(entries: Iterable[HistoryEntry]) -> set[str]:
    """Collect platform message IDs present in the history.

    Args:
        entries: History entries.

    Returns:
        Non-empty message IDs, used to skip quotes already in the log.
    """
    return {
        message_id
        for entry in entries
        for message_id in entry.message_ids
        if message_id
    }


def resolve_speaker(
    entry: HistoryEntry,
    speaker_name: str,
    personality_names: set[str] | None = None,
) -> tuple[str, str] | None:
    """Resolve the display name and role label of an entry.

    A user whose persona name collides with an AI personality name is shown
    as "Name (@username)" when a username is known.

    Args:
        entry: History entry.
        speaker_name: Name of the personality answering.
        personality_names: All AI personality names in the conversation.

    Returns:
        (name, role label), or None for entries without a speaker.
    """
    label = ROLE_LABELS[entry.role]
    if label is None:
        return None

    if entry.role is MessageRole.ASSISTANT:
        return entry.personality_name or speaker_name, label

    name = entry.persona_name or DEFAULT_USER_NAME
    names = personality_names if personality_names is not None else {speaker_name}
    lowered = name.lower()
    if entry.username and any(lowered == other.lower() for other in names):
        name = f"{name} (@{entry.username})"
    return name, label


def _is_assistant_author(author: str, personality_names: set[str]) -> bool:
    lowered = author.lower()
    return any(lowered.startswith(name.lower()) for name in personality_names)


def format_referenced_message(
    ref: ReferencedMessage,
    personality_names: set[str],
    time_formatter: TimeFormatter,
) -> str:
    """Format a quoted message as a <message quoted="true"> element.

    Args:
        ref: Referenced message.
        personality_names: AI personality names, used to infer the role.
        time_formatter: Timestamp formatter.

    Returns:
        Message XML.
    """
    author = ref.author_name
    role = "assistant" if _is_assistant_author(author, personality_names) else "user"
    time_attr = (
        f' t="{escape_xml(time_formatter.prompt_timestamp(ref.timestamp))}"'
        if ref.timestamp is not None
        else ""
    )
    forwarded_attr = ' forwarded="true"' if ref.is_forwarded else ""

    body = escape_xml_content(ref.content)
    if ref.embeds:
        body += f"\n<embeds>{escape_xml_content(ref.embeds)}</embeds>"
    if ref.attachments:
        items = ", ".join(
            f"[{att.content_type}: {att.name or 'attachment'}]"
            for att in ref.attachments
        )
        body += f"\n<attachments>{escape_xml_content(items)}</attachments>"
    if ref.location_context and not any(
        marker in ref.location_context for marker in LEGACY_LOCATION_MARKERS
    ):
        body += f"\n{ref.location_context}"

    return (
        f'<message from="{escape_xml(author)}" role="{role}"'
        f'{time_attr}{forwarded_attr} quoted="true">{body}</message>'
    )


def _quoted_section(
    entry: HistoryEntry,
    personality_names: set[str],
    history_message_ids: set[str] | None,
    time_formatter: TimeFormatter,
) -> str:
    if entry.role is not MessageRole.USER:
        return ""
    refs = entry.metadata.referenced_messages
    if history_message_ids is not None:
        refs = tuple(ref for ref in refs if ref.message_id not in history_message_ids)
    if not refs:
        return ""
    formatted = "\n".join(
        format_referenced_message(ref, personality_names, time_formatter)
        for ref in refs
    )
    return f"\n<quoted_messages>\n{formatted}\n</quoted_messages>"


def _metadata_sections(metadata: MessageMetadata) -> str:
    sections = ""
    if metadata.image_descriptions:
        images = "\n".join(
            f'<image filename="{escape_xml(img.filename)}">'
            f"{escape_xml_content(img.description)}</image>"
            for img in metadata.image_descriptions
        )
        sections += f"\n<image_descriptions>\n{images}\n</image_descriptions>"
    if metadata.embeds_xml:
        # Embeds arrive as already-formatted XML.
        sections += "\n<embeds>\n" + "\n".join(metadata.embeds_xml) + "\n</embeds>"
    if metadata.voice_transcripts:
        transcripts = "\n".join(
            f"<transcript>{escape_xml_content(t)}</transcript>"
            for t in metadata.voice_transcripts
        )
        sections += f"\n<voice_transcripts>\n{transcripts}\n</voice_transcripts>"
    if metadata.reactions:
        reactions: list[str] = []
        for reaction in metadata.reactions:
            custom_attr = ' custom="true"' if reaction.is_custom else ""
            reactors = ", ".join(escape_xml(name) for name in reaction.reactors)
            reactions.append(
                f'<reaction emoji="{escape_xml(reaction.emoji)}"{custom_attr}>'
                f"{reactors}</reaction>"
            )
        sections += "\n<reactions>\n" + "\n".join(reactions) + "\n</reactions>"
    return sections


def format_history_entry(
    entry: HistoryEntry,
    speaker_name: str,
    time_formatter: TimeFormatter,
    *,
    history_message_ids: set[str] | None = None,
    personality_names: set[str] | None = None,
) -> str:
    """Format a single history entry as a <message> element.

    Args:
        entry: History entry.
        speaker_name: Name of the personality answering.
        time_formatter: Timestamp formatter.
        history_message_ids: Message IDs already in the log; quotes of
            these are not repeated.
        personality_names: All AI personality names in the conversation.

    Returns:
        Message XML, or "" for entries without a speaker.
    """
    names = personality_names if personality_names is not None else {speaker_name}
    speaker = resolve_speaker(entry, speaker_name, names)
    if speaker is None:
        return ""
    name, role = speaker

    from_id_attr = (
        f' from_id="{escape_xml(entry.persona_id)}"'
        if entry.role is MessageRole.USER and entry.persona_id
        else ""
    )
    time_attr = (
        f' t="{escape_xml(time_formatter.prompt_timestamp(entry.created_at))}"'
        if entry.created_at is not None
        else ""
    )
    forwarded_attr = ' forwarded="true"' if entry.is_forwarded else ""

    body = escape_xml_content(entry.content)
    body += _quoted_section(entry, names, history_message_ids, time_formatter)
    body += _metadata_sections(entry.metadata)

    return (
        f'<message from="{escape_xml(name)}"{from_id_attr} role="{role}"'
        f"{time_attr}{forwarded_attr}>{body}</message>"
    )


def is_rendered(entry: HistoryEntry) -> bool:
    """Return whether an entry produces a <message> element."""
    return ROLE_LABELS[entry.role] is not None


def format_time_gap(
    previous: datetime | None,
    current: datetime | None,
    time_gap: TimeGapConfig | None,
) -> str:
    """Format the <time_gap> marker written before a message.

    Args:
        previous: Time of the previous timestamped message.
        current: Time of the message about to be written.
        time_gap: Gap-marker threshold, or None when markers are off.

    Returns:
        Marker XML, or "" when no marker is due.
    """
    if time_gap is None or previous is None or current is None:
        return ""
    gap = current - previous
    if gap < time_gap.min_gap:
        return ""
    return f'<time_gap duration="{format_duration(gap)}" />'


def format_history(
    entries: list[HistoryEntry],
    speaker_name: str,
    time_formatter: TimeFormatter,
    time_gap: TimeGapConfig | None = None,
) -> str:
    """Format history entries as newline-separated <message> elements.

    Args:
        entries: Entries in chronological order.
        speaker_name: Name of the personality answering.
        time_formatter: Timestamp formatter.
        time_gap: When set, gaps at least this long between consecutive
            timestamped messages are marked with <time_gap>.

    Returns:
        Formatted history, or "" if empty.
    """
    if not entries:
        return ""

    history_message_ids = collect_history_message_ids(entries)
    personality_names = collect_personality_names(entries, speaker_name)

    lines: list[str] = []
    previous: datetime | None = None
    for entry in entries:
        formatted = format_history_entry(
            entry,
            speaker_name,
            time_formatter,
            history_message_ids=history_message_ids,
            personality_names=personality_names,
        )
        if not formatted:
            continue

        created_at = parse_timestamp(entry.created_at)
        marker = format_time_gap(previous, created_at, time_gap)
        if marker:
            lines.append(marker)
        lines.append(formatted)
        if created_at is not None:
            previous = created_at

    return "\n".join(lines)


# "assistant" is longer than "user"
_QUOTED_ROLE_ALLOWANCE = len("assistant") - len("user")


def estimate_entry_chars(
    entry: HistoryEntry,
    speaker_name: str,
    time_formatter: TimeFormatter,
) -> int:
    """Upper-bound the formatted length of an entry without a tokenizer.

    The entry is rendered on its own, so escaping is accounted for and
    every quote is included. What the surrounding log can still change is
    added on top: a collision suffix on the user's name, and quoted authors
    resolving to the longer assistant role.

    Args:
        entry: History entry.
        speaker_name: Name of the personality answering.
        time_formatter: Timestamp formatter.

    Returns:
        Character count no smaller than the entry's length in the log,
        0 for entries without a speaker.
    """
    formatted = format_history_entry(entry, speaker_name, time_formatter)
    if not formatted:
        return 0

    length = len(formatted)
    if entry.role is MessageRole.USER:
        if entry.username:
            length += len(f" (@{escape_xml(entry.username)})")
        length += _QUOTED_ROLE_ALLOWANCE * len(entry.metadata.referenced_messages)
    return length


def estimate_chars_as_tokens(chars: int) -> int:
    """Convert a character count into a conservative token estimate."""
    return math.ceil(chars / CHARS_PER_TOKEN)
