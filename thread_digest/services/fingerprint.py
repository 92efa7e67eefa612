"""
Content Fingerprint Strategies

A fingerprint is a cheap integer proxy for "has the thread changed since the
summary was cached". The orchestrator compares the fingerprint of freshly
fetched content with the one stored next to the cached summary.

- MessageCountFingerprint (default): number of messages. Catches new and
  deleted messages, misses in-place edits.
- ContentHashFingerprint: SHA-256 over each message's ts and text, truncated
  to 63 bits. Also catches edits.

Both values fit in the ``messageCount`` field of the stored record.
"""

import hashlib
from collections.abc import Sequence
from typing import Protocol

from thread_digest.core.models import ContentItem


class FingerprintStrategy(Protocol):
    name: str

    def compute(self, items: Sequence[ContentItem]) -> int:
        ...


class MessageCountFingerprint:
    name = "message_count"

    def compute(self, items: Sequence[ContentItem]) -> int:
        return len(items)


class ContentHashFingerprint:
    name = "content_hash"

    def compute(self, items: Sequence[ContentItem]) -> int:
        digest = hashlib.sha256()
        for item in items:
            digest.update(item.timestamp.encode())
            digest.update(b"\x00")
            digest.update(item.text.encode())
            digest.update(b"\x1e")
        # 63 bits keeps the value a non-negative signed 64-bit integer
        return int(digest.hexdigest()[:16], 16) >> 1


_STRATEGIES: dict[str, type] = {
    MessageCountFingerprint.name: MessageCountFingerprint,
    ContentHashFingerprint.name: ContentHashFingerprint,
}


def get_fingerprint_strategy(name: str) -> FingerprintStrategy:
    """
    Look up a strategy by its configuration name.

    Raises:
        ValueError: For unknown names
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown fingerprint strategy: {name!r}") from None
