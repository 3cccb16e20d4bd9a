"""Timestamp formatting for prompts.

Formatting is an injected capability: every formatter that renders a time
receives a TimeFormatter, so output depends only on its arguments and the
formatter's clock and zone, never on process-wide locale or timezone state.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo

# Fixed English names; strftime("%a") would follow the process locale.
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def _as_utc_if_naive(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def parse_timestamp(value: datetime | str | int | float | None) -> datetime | None:
    """Parse a timestamp from the shapes upstream stores hand over.

    Accepts datetimes (naive ones are treated as UTC), ISO-8601 strings
    (a trailing "Z" is allowed) and epoch milliseconds.

    Args:
        value: Raw timestamp.

    Returns:
        Timezone-aware datetime, or None if missing or invalid. Zero
        epochs are treated as missing.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if value <= 0:
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    return _as_utc_if_naive(parsed)


def format_duration(delta: timedelta) -> str:
    """Format a duration using its two largest units.

    Args:
        delta: Duration.

    Returns:
        e.g. "4 hours", "1 hour 30 minutes", "1 day 4 hours".
    """
    total_minutes = int(abs(delta).total_seconds()) // 60
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    parts = [
        _plural(amount, unit)
        for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute"))
        if amount > 0
    ]
    if not parts:
        return "less than a minute"
    return " ".join(parts[:2])


@dataclass(frozen=True)
class TimeGapConfig:
    """Threshold for marking gaps between consecutive messages.

    Attributes:
        min_gap: Smallest gap that gets a <time_gap> marker.
    """

    min_gap: timedelta = timedelta(hours=1)


@dataclass(frozen=True)
class TimeFormatter:
    """Renders timestamps in a fixed zone relative to a clock.

    Naive datetimes are read as UTC, matching parse_timestamp.

    Attributes:
        tz: Zone used for absolute times.
        now: Clock used for relative times.
    """

    tz: tzinfo = timezone.utc
    now: Callable[[], datetime] = field(default=_utc_now)

    def absolute(self, ts: datetime) -> str:
        """Format as "2024-01-15 (Mon) 14:30" in the formatter's zone."""
        local = _as_utc_if_naive(ts).astimezone(self.tz)
        return f"{local:%Y-%m-%d} ({WEEKDAYS[local.weekday()]}) {local:%H:%M}"

    def date_only(self, ts: datetime) -> str:
        """Format as "2024-01-15" in the formatter's zone."""
        return f"{_as_utc_if_naive(ts).astimezone(self.tz):%Y-%m-%d}"

    def relative(self, ts: datetime) -> str:
        """Format as a human-relative delta such as "2 weeks ago"."""
        seconds = (self.now() - _as_utc_if_naive(ts)).total_seconds()
        if seconds < 60:
            return "just now"

        minutes = int(seconds // 60)
        if minutes < 60:
            return f"{_plural(minutes, 'minute')} ago"
        hours = minutes // 60
        if hours < 24:
            return f"{_plural(hours, 'hour')} ago"
        days = hours // 24
        if days < 7:
            return f"{_plural(days, 'day')} ago"
        if days < 30:
            return f"{_plural(days // 7, 'week')} ago"
        if days < 365:
            return f"{_plural(days // 30, 'month')} ago"
        return f"{_plural(days // 365, 'year')} ago"

    def prompt_timestamp(self, ts: datetime) -> str:
        """Format as "2024-01-15 (Mon) 14:30 • 2 hours ago"."""
        return f"{self.absolute(ts)} • {self.relative(ts)}"
