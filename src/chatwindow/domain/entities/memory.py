"""Retrieved memory entity."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MemoryDocument:
    """A long-term memory retrieved for the current turn.

    Attributes:
        content: Memory text.
        id: Memory identifier.
        created_at: When the memory was recorded. Upstream stores may hand
            over a datetime, an ISO-8601 string or epoch milliseconds;
            anything unparsable is treated as missing.
        score: Relevance score from retrieval.
    """

    content: str
    id: str | None = None
    created_at: datetime | str | int | float | None = None
    score: float | None = None
