"""
Slack Adapters

- thread_source: thread messages as ContentItems (slack_sdk AsyncWebClient)
- user_directory: display-name cache
- token_store: installation token cache over Redis
- formatting: command text parsing and Block Kit rendering
"""

from thread_digest.slack.formatting import (
    ThreadReference,
    format_summary_for_slack,
    parse_command_text,
    parse_target_language,
)
from thread_digest.slack.thread_source import SlackContentSourceProvider, SlackThreadSource
from thread_digest.slack.token_store import InstallationTokenStore
from thread_digest.slack.user_directory import UserDirectory

__all__ = [
    "SlackThreadSource",
    "SlackContentSourceProvider",
    "InstallationTokenStore",
    "UserDirectory",
    "ThreadReference",
    "format_summary_for_slack",
    "parse_command_text",
    "parse_target_language",
]
