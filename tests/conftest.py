"""Common fixtures."""

import math
from datetime import datetime, timezone

import pytest

from chatwindow.domain.services.time_format import TimeFormatter


class FakeTokenCounter:
    """Deterministic TokenCounter: one token per four characters."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def count(self, text: str) -> int:
        self.calls.append(text)
        return math.ceil(len(text) / 4)


@pytest.fixture
def now() -> datetime:
    """Fixed clock for relative timestamps."""
    return datetime(2024, 1, 15, 16, 30, tzinfo=timezone.utc)


@pytest.fixture
def counter() -> FakeTokenCounter:
    """Create a deterministic token counter."""
    return FakeTokenCounter()


@pytest.fixture
def time_formatter(now: datetime) -> TimeFormatter:
    """Create a UTC time formatter with a frozen clock."""
    return TimeFormatter(now=lambda: now)
