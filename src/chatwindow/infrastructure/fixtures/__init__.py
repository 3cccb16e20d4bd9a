"""Conversation fixtures."""

from chatwindow.infrastructure.fixtures.conversation_loader import (
    FixtureError,
    load_conversation,
)

__all__ = ["FixtureError", "load_conversation"]
