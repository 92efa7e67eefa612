"""
Content Source Protocols

The orchestrator reads thread content through these interfaces. The Slack
implementations live in thread_digest.slack.thread_source; tests use fakes.

- ContentSource: bound to one workspace's credentials, fetches one thread
- ContentSourceProvider: hands out the ContentSource of a workspace, raising
  WorkspaceNotInstalledError when the workspace has no credentials

Implementations must drop bot-authored messages and messages without text
before returning, and must keep thread order.
"""

from typing import Protocol, runtime_checkable

from thread_digest.core.models import ContentItem


@runtime_checkable
class ContentSource(Protocol):
    """Fetches the current messages of one thread."""

    async def fetch_content(self, scope_id: str, anchor_id: str) -> list[ContentItem]:
        ...


@runtime_checkable
class ContentSourceProvider(Protocol):
    """Resolves the ContentSource for a workspace."""

    async def for_workspace(self, workspace_id: str) -> ContentSource:
        ...
