"""
Domain Models

Pydantic models shared by the Slack adapters, the generation gateway, the
cache stores and the orchestrator.

- ContentItem: one human-authored Slack message in a thread
- StructuredSummary: the generation result stored in and served from cache
- CacheEntry: a stored result plus its content fingerprint and timestamps
- ResolveOutcome: what the orchestrator hands back to the HTTP boundary
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from thread_digest.core.config.constants import SupportedLanguage


class ContentItem(BaseModel):
    """A single message of a thread, already filtered and name-resolved."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    user_name: str
    text: str
    timestamp: str
    thread_ts: str | None = None


class TodoItem(BaseModel):
    """An action item extracted from a thread."""

    text: str
    assignee: str | None = None
    due: str | None = None


class StructuredSummary(BaseModel):
    """
    Generation result for one thread in one language.

    Only ``overview`` is guaranteed by the prompts; every list defaults to
    empty. ``tech_notes`` is exchanged on the wire as ``techNotes``.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    overview: str
    decisions: list[str] = Field(default_factory=list)
    todos: list[TodoItem] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    tech_notes: list[str] = Field(default_factory=list, alias="techNotes")
    language: SupportedLanguage

    def to_wire(self) -> dict:
        """Serialize with wire field names (``techNotes``) and plain enum values."""
        return self.model_dump(mode="json", by_alias=True)


class CacheEntry(BaseModel):
    """
    A cached generation result.

    Logically dead once ``expires_at`` has passed or once the freshly
    observed content fingerprint differs from ``content_fingerprint``.
    """

    result: StructuredSummary
    content_fingerprint: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class ResolveOutcome(BaseModel):
    """Summary plus the message count it was computed from."""

    summary: StructuredSummary
    message_count: int
    cached: bool = False
