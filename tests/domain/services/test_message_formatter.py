"""Tests for message_formatter module."""

from datetime import datetime, timedelta, timezone

import pytest

from chatwindow.domain.entities import (
    HistoryEntry,
    ImageDescription,
    MessageMetadata,
    MessageRole,
    Reaction,
    ReferencedMessage,
)
from chatwindow.domain.services.message_formatter import (
    estimate_chars_as_tokens,
    estimate_entry_chars,
    format_history,
    format_history_entry,
    resolve_speaker,
)
from chatwindow.domain.services.time_format import TimeFormatter, TimeGapConfig


@pytest.fixture
def timestamp() -> datetime:
    """Two hours before the fixed clock."""
    return datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def user_entry(timestamp: datetime) -> HistoryEntry:
    """Create a user entry."""
    return HistoryEntry(
        role=MessageRole.USER,
        content="a < b & c",
        created_at=timestamp,
        persona_id="p-alice",
        persona_name="Alice",
    )


class TestResolveSpeaker:
    """resolve_speaker tests."""

    def test_user_without_name(self) -> None:
        entry = HistoryEntry(role=MessageRole.USER, content="hi")
        assert resolve_speaker(entry, "Myao") == ("User", "user")

    def test_assistant_uses_speaker_name(self) -> None:
        entry = HistoryEntry(role=MessageRole.ASSISTANT, content="hi")
        assert resolve_speaker(entry, "Myao") == ("Myao", "assistant")

    def test_assistant_personality_name(self) -> None:
        entry = HistoryEntry(
            role=MessageRole.ASSISTANT, content="hi", personality_name="Nyan"
        )
        assert resolve_speaker(entry, "Myao") == ("Nyan", "assistant")

    def test_name_collision_disambiguated(self) -> None:
        """Test that a user named like an AI personality gets their handle."""
        entry = HistoryEntry(
            role=MessageRole.USER,
            content="hi",
            persona_name="myao",
            username="realmyao",
        )
        assert resolve_speaker(entry, "Myao") == ("myao (@realmyao)", "user")

    def test_system_has_no_speaker(self) -> None:
        entry = HistoryEntry(role=MessageRole.SYSTEM, content="joined")
        assert resolve_speaker(entry, "Myao") is None


class TestFormatHistoryEntry:
    """format_history_entry tests."""

    def test_user_message(
        self, user_entry: HistoryEntry, time_formatter: TimeFormatter
    ) -> None:
        result = format_history_entry(user_entry, "Myao", time_formatter)

        assert result == (
            '<message from="Alice" from_id="p-alice" role="user" '
            't="2024-01-15 (Mon) 14:30 • 2 hours ago">a &lt; b &amp; c</message>'
        )

    def test_naive_timestamps_read_as_utc(self, time_formatter: TimeFormatter) -> None:
        """Test that naive message and quote times render without error."""
        naive = datetime(2024, 1, 15, 14, 30)
        entry = HistoryEntry(
            role=MessageRole.USER,
            content="agreed",
            persona_name="Bob",
            created_at=naive,
            metadata=MessageMetadata(
                referenced_messages=(
                    ReferencedMessage(
                        message_id="m9",
                        author_display_name="Alice",
                        author_username="alice",
                        content="Friday?",
                        timestamp=naive,
                    ),
                )
            ),
        )

        result = format_history_entry(entry, "Myao", time_formatter)

        assert result.count('t="2024-01-15 (Mon) 14:30 • 2 hours ago"') == 2

    def test_assistant_message_has_no_from_id(
        self, time_formatter: TimeFormatter
    ) -> None:
        entry = HistoryEntry(
            role=MessageRole.ASSISTANT, content="Hello!", persona_id="p-x"
        )

        result = format_history_entry(entry, "Myao", time_formatter)

        assert result == '<message from="Myao" role="assistant">Hello!</message>'

    def test_forwarded(self, time_formatter: TimeFormatter) -> None:
        entry = HistoryEntry(
            role=MessageRole.USER, content="fwd", persona_name="Bob", is_forwarded=True
        )

        result = format_history_entry(entry, "Myao", time_formatter)

        assert result == '<message from="Bob" role="user" forwarded="true">fwd</message>'

    def test_system_renders_empty(self, time_formatter: TimeFormatter) -> None:
        entry = HistoryEntry(role=MessageRole.SYSTEM, content="joined")
        assert format_history_entry(entry, "Myao", time_formatter) == ""

    def test_quoted_messages(
        self, time_formatter: TimeFormatter, timestamp: datetime
    ) -> None:
        """Test that quotes render as nested quoted messages."""
        entry = HistoryEntry(
            role=MessageRole.USER,
            content="agreed",
            persona_name="Bob",
            metadata=MessageMetadata(
                referenced_messages=(
                    ReferencedMessage(
                        message_id="m9",
                        author_display_name="Myao",
                        author_username="myao_bot",
                        content="Friday works",
                        timestamp=timestamp,
                    ),
                )
            ),
        )

        result = format_history_entry(entry, "Myao", time_formatter)

        assert result == (
            '<message from="Bob" role="user">agreed\n'
            "<quoted_messages>\n"
            '<message from="Myao" role="assistant" '
            't="2024-01-15 (Mon) 14:30 • 2 hours ago" quoted="true">'
            "Friday works</message>\n"
            "</quoted_messages></message>"
        )

    def test_quote_already_in_history_skipped(
        self, time_formatter: TimeFormatter
    ) -> None:
        entry = HistoryEntry(
            role=MessageRole.USER,
            content="agreed",
            persona_name="Bob",
            metadata=MessageMetadata(
                referenced_messages=(
                    ReferencedMessage(
                        message_id="m9",
                        author_display_name="Alice",
                        author_username="alice",
                        content="Friday?",
                    ),
                )
            ),
        )

        result = format_history_entry(
            entry, "Myao", time_formatter, history_message_ids={"m9"}
        )

        assert "<quoted_messages>" not in result

    def test_metadata_sections(self, time_formatter: TimeFormatter) -> None:
        entry = HistoryEntry(
            role=MessageRole.USER,
            content="look",
            persona_name="Bob",
            metadata=MessageMetadata(
                image_descriptions=(ImageDescription("cat.png", "A cat & a box"),),
                voice_transcripts=("hello there",),
                reactions=(
                    Reaction(emoji="👍", reactors=("Alice", "Carol")),
                    Reaction(emoji="party_cat", reactors=("Bob",), is_custom=True),
                ),
            ),
        )

        result = format_history_entry(entry, "Myao", time_formatter)

        assert result == (
            '<message from="Bob" role="user">look\n'
            "<image_descriptions>\n"
            '<image filename="cat.png">A cat &amp; a box</image>\n'
            "</image_descriptions>\n"
            "<voice_transcripts>\n"
            "<transcript>hello there</transcript>\n"
            "</voice_transcripts>\n"
            "<reactions>\n"
            '<reaction emoji="👍">Alice, Carol</reaction>\n'
            '<reaction emoji="party_cat" custom="true">Bob</reaction>\n'
            "</reactions></message>"
        )


class TestFormatHistory:
    """format_history tests."""

    def test_empty(self, time_formatter: TimeFormatter) -> None:
        assert format_history([], "Myao", time_formatter) == ""

    def test_joins_and_skips_system(
        self, user_entry: HistoryEntry, time_formatter: TimeFormatter
    ) -> None:
        entries = [
            user_entry,
            HistoryEntry(role=MessageRole.SYSTEM, content="pinned"),
            HistoryEntry(role=MessageRole.ASSISTANT, content="ok"),
        ]

        lines = format_history(entries, "Myao", time_formatter).split("\n")

        assert len(lines) == 2
        assert lines[1] == '<message from="Myao" role="assistant">ok</message>'

    def test_time_gap_marker(
        self, time_formatter: TimeFormatter, timestamp: datetime
    ) -> None:
        """Test that long silences are marked between messages."""
        entries = [
            HistoryEntry(
                role=MessageRole.USER,
                content="first",
                created_at=timestamp - timedelta(hours=4, minutes=15),
            ),
            HistoryEntry(role=MessageRole.USER, content="second", created_at=timestamp),
        ]

        result = format_history(entries, "Myao", time_formatter, TimeGapConfig())

        assert '<time_gap duration="4 hours 15 minutes" />' in result.split("\n")

    def test_short_gap_not_marked(
        self, time_formatter: TimeFormatter, timestamp: datetime
    ) -> None:
        entries = [
            HistoryEntry(
                role=MessageRole.USER,
                content="first",
                created_at=timestamp - timedelta(minutes=30),
            ),
            HistoryEntry(role=MessageRole.USER, content="second", created_at=timestamp),
        ]

        result = format_history(entries, "Myao", time_formatter, TimeGapConfig())

        assert "<time_gap" not in result

    def test_time_gap_between_naive_and_aware(
        self, time_formatter: TimeFormatter, timestamp: datetime
    ) -> None:
        """Test that naive and aware times can be compared for gaps."""
        entries = [
            HistoryEntry(
                role=MessageRole.USER,
                content="first",
                created_at=datetime(2024, 1, 15, 9),
            ),
            HistoryEntry(role=MessageRole.USER, content="second", created_at=timestamp),
        ]

        result = format_history(entries, "Myao", time_formatter, TimeGapConfig())

        assert '<time_gap duration="5 hours 30 minutes" />' in result.split("\n")

    def test_no_time_gap_before_system_entry(
        self, time_formatter: TimeFormatter, timestamp: datetime
    ) -> None:
        """Test that skipped entries never leave a dangling marker."""
        entries = [
            HistoryEntry(
                role=MessageRole.USER,
                content="first",
                created_at=timestamp - timedelta(hours=3),
            ),
            HistoryEntry(
                role=MessageRole.SYSTEM, content="joined", created_at=timestamp
            ),
        ]

        result = format_history(entries, "Myao", time_formatter, TimeGapConfig())

        assert "<time_gap" not in result

    def test_idempotent(
        self, user_entry: HistoryEntry, time_formatter: TimeFormatter
    ) -> None:
        """Test that formatting the same input twice yields the same text."""
        entries = [user_entry, HistoryEntry(role=MessageRole.ASSISTANT, content="ok")]

        assert format_history(entries, "Myao", time_formatter) == format_history(
            entries, "Myao", time_formatter
        )


class TestEstimateEntryChars:
    """estimate_entry_chars tests."""

    def test_plain_entry_is_exact(self, time_formatter: TimeFormatter) -> None:
        """Test that plain text estimates the exact formatted length."""
        entry = HistoryEntry(role=MessageRole.USER, content="hi", persona_name="Bob")

        estimate = estimate_entry_chars(entry, "Myao", time_formatter)

        assert estimate == len(format_history_entry(entry, "Myao", time_formatter))

    def test_escaping_counted(self, time_formatter: TimeFormatter) -> None:
        """Test that escaped characters count at their escaped width."""
        entry = HistoryEntry(
            role=MessageRole.USER, content="<" * 400, persona_name="Bob"
        )

        assert estimate_entry_chars(entry, "Myao", time_formatter) >= 1600

    def test_forwarded_counted(self, time_formatter: TimeFormatter) -> None:
        entry = HistoryEntry(
            role=MessageRole.USER, content="fwd", persona_name="Bob", is_forwarded=True
        )

        estimate = estimate_entry_chars(entry, "Myao", time_formatter)

        assert estimate == len(format_history_entry(entry, "Myao", time_formatter))

    def test_covers_collision_with_other_personality(
        self, time_formatter: TimeFormatter
    ) -> None:
        """Test that a name clash found only in the full log is covered."""
        user = HistoryEntry(
            role=MessageRole.USER,
            content="hi",
            persona_name="Nyan",
            username="nyan_fan",
            metadata=MessageMetadata(
                referenced_messages=(
                    ReferencedMessage(
                        message_id="m9",
                        author_display_name="Nyan",
                        author_username="nyan_bot",
                        content="meow",
                    ),
                )
            ),
        )
        entries = [
            HistoryEntry(
                role=MessageRole.ASSISTANT, content="meow", personality_name="Nyan"
            ),
            user,
        ]

        rendered = format_history(entries, "Myao", time_formatter).split("\n", 1)[1]

        assert "Nyan (@nyan_fan)" in rendered
        assert estimate_entry_chars(user, "Myao", time_formatter) >= len(rendered)

    def test_system_is_free(self, time_formatter: TimeFormatter) -> None:
        entry = HistoryEntry(role=MessageRole.SYSTEM, content="pinned")
        assert estimate_entry_chars(entry, "Myao", time_formatter) == 0

    def test_chars_as_tokens_rounds_up(self) -> None:
        assert estimate_chars_as_tokens(9) == 3
        assert estimate_chars_as_tokens(8) == 2
