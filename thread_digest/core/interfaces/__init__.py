from thread_digest.core.interfaces.cache_store import CacheStore
from thread_digest.core.interfaces.content_source import ContentSource, ContentSourceProvider

__all__ = ["CacheStore", "ContentSource", "ContentSourceProvider"]
