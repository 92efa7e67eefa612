"""
Content Source Exceptions

Exceptions raised while fetching thread content from Slack or while
resolving the workspace installation that grants access to it.

Author: System Architect
Date: 2025-12-08
"""

from thread_digest.core.exceptions.base import DigestBaseError


class ContentError(DigestBaseError):
    """Base exception for content source errors."""
    pass


class EmptyContentError(ContentError):
    """Raised when a thread yields no summarizable messages."""
    pass


class ContentSourceError(ContentError):
    """
    Raised when Slack cannot return the thread.

    Common causes:
    - channel_not_found / thread_not_found
    - Bot is not a member of the channel
    - Slack API rate limiting
    """
    pass


class WorkspaceNotInstalledError(DigestBaseError):
    """Raised when no bot token is known for the requesting workspace."""
    pass
