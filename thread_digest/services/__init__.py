"""
Service Layer

- summary_orchestrator: lookup-or-generate coordinator
- fingerprint: content change detection strategies
- inflight: optional per-key generation coalescing
"""

from thread_digest.services.fingerprint import (
    ContentHashFingerprint,
    FingerprintStrategy,
    MessageCountFingerprint,
    get_fingerprint_strategy,
)
from thread_digest.services.inflight import InFlightRegistry
from thread_digest.services.summary_orchestrator import SummaryOrchestrator

__all__ = [
    "SummaryOrchestrator",
    "FingerprintStrategy",
    "MessageCountFingerprint",
    "ContentHashFingerprint",
    "get_fingerprint_strategy",
    "InFlightRegistry",
]
