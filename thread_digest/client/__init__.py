"""
Summary Client
- summary_client: httpx API client and the locally cached wrapper
- cli: ``thread-digest`` command
"""

from thread_digest.client.summary_client import CachedSummaryClient, SummaryApiClient, SummaryApiError

__all__ = ["SummaryApiClient", "CachedSummaryClient", "SummaryApiError"]
