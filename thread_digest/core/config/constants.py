"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the thread digest service.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for identifier grammars and key prefixes
- Type-safe enums for languages and cache outcomes

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Supported Languages
# ============================================================================


class SupportedLanguage(str, Enum):
    """Target languages accepted by the summary endpoint and the cache key."""

    JA = "ja"
    EN = "en"
    ZH = "zh"
    KO = "ko"
    ES = "es"
    FR = "fr"
    DE = "de"


DEFAULT_LANGUAGE = SupportedLanguage.JA

LANGUAGE_NAMES: dict[str, str] = {
    "ja": "Japanese",
    "en": "English",
    "zh": "Chinese",
    "ko": "Korean",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
}


# ============================================================================
# Cache Outcomes
# ============================================================================


class CacheOutcome(str, Enum):
    """
    Result of a cache probe as seen by the orchestrator.

    HIT: stored fingerprint matches fresh content
    MISS: nothing stored (or the store failed)
    STALE: a record exists but its fingerprint disagrees
    """

    HIT = "hit"
    MISS = "miss"
    STALE = "stale"


# ============================================================================
# Identifier Grammars
# ============================================================================

SLACK_ID_PATTERN = r"[A-Z][A-Z0-9]{8,}"
SLACK_TS_PATTERN = r"[0-9]+\.[0-9]+"
CACHE_KEY_DELIMITER = ":"
LOCAL_KEY_DELIMITER = "-"

# ============================================================================
# TTLs and Limits
# ============================================================================

SECONDS_PER_DAY = 24 * 60 * 60
SUMMARY_CACHE_TTL_DAYS = 90
LOCAL_CACHE_TTL_DAYS = 14
LOCAL_CACHE_MAX_ENTRIES = 100
TOKEN_CACHE_TTL_SECONDS = 5 * 60
MAX_THREAD_MESSAGES = 100
MAX_MESSAGES_FOR_PROMPT = 30

# ============================================================================
# Redis Key Prefixes
# ============================================================================

REDIS_KEY_SUMMARY_CACHE = "summary_cache"
REDIS_KEY_INSTALLATION = "slack:installation"
REDIS_FIELD_BOT_TOKEN = "bot_token"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"

# ============================================================================
# Boundary Error Codes
# ============================================================================

ERROR_VALIDATION = "VALIDATION_ERROR"
ERROR_NOT_INSTALLED = "NOT_INSTALLED"
ERROR_THREAD_NOT_FOUND = "THREAD_NOT_FOUND"
ERROR_INTERNAL = "INTERNAL_ERROR"

SUMMARY_FOOTER_TEXT = "Generated by Slack Thread Summarizer"

# ============================================================================
# Slash Command Replies
# ============================================================================

COMMAND_USAGE_TEXT = (
    "Please provide a message link or thread timestamp.\n"
    "Usage: `/summarize <message link> [language]` (e.g., `/summarize https://.../p1700000000000100 en`)"
)
COMMAND_PENDING_TEXT = "Summarizing thread... Please wait."
COMMAND_EMPTY_TEXT = "No messages found in this thread."
COMMAND_NOT_INSTALLED_TEXT = "The app is not installed for this workspace."
COMMAND_FAILED_TEXT = "Sorry, an error occurred while generating the summary. Please try again later."
