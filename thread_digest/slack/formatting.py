"""
Slack Formatting Helpers

- parse_target_language(): free text ("ja", " English ") → language code
- parse_command_text(): /summarize text → thread reference + language
- format_summary_for_slack(): StructuredSummary → Block Kit blocks
"""

import re
from typing import Any, NamedTuple

from thread_digest.core.config.constants import (
    DEFAULT_LANGUAGE,
    LANGUAGE_NAMES,
    SUMMARY_FOOTER_TEXT,
    SupportedLanguage,
)
from thread_digest.core.models import StructuredSummary
from thread_digest.infrastructure.cache.key_codec import is_valid_timestamp

_LANGUAGE_ALIASES: dict[str, SupportedLanguage] = {
    **{code: SupportedLanguage(code) for code in LANGUAGE_NAMES},
    **{name.lower(): SupportedLanguage(code) for code, name in LANGUAGE_NAMES.items()},
}


def parse_target_language(text: str | None) -> SupportedLanguage:
    """Accept a code or an English language name; anything else means Japanese."""
    normalized = (text or "").strip().lower()
    return _LANGUAGE_ALIASES.get(normalized, DEFAULT_LANGUAGE)


# https://team.slack.com/archives/C0123ABCD9/p1700000000000100?thread_ts=1700000000.000050
_PERMALINK_RE = re.compile(r"/archives/(?P<channel>[A-Z0-9]+)/p(?P<seconds>[0-9]{10})(?P<micros>[0-9]{6})")
# Slack escapes "&" as "&amp;" inside command text
_THREAD_TS_PARAM_RE = re.compile(r"[?&;]thread_ts=(?P<ts>[0-9]+\.[0-9]+)")


class ThreadReference(NamedTuple):
    channel_id: str | None
    thread_ts: str | None
    language: SupportedLanguage


def parse_command_text(text: str | None) -> ThreadReference:
    """
    Split the text of a /summarize command into thread and language.

    The thread is given as a message permalink or a bare ``digits.digits``
    timestamp. For a reply permalink the ``thread_ts`` query parameter names
    the parent. The first remaining word is read as the language.
    """
    channel_id: str | None = None
    thread_ts: str | None = None
    language_word: str | None = None

    for word in (text or "").split():
        word = word.strip("<>").split("|")[0]
        link = _PERMALINK_RE.search(word)
        if link:
            channel_id = link["channel"]
            parent = _THREAD_TS_PARAM_RE.search(word)
            thread_ts = parent["ts"] if parent else f"{link['seconds']}.{link['micros']}"
        elif is_valid_timestamp(word):
            thread_ts = word
        elif language_word is None:
            language_word = word

    return ThreadReference(channel_id, thread_ts, parse_target_language(language_word))


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _bullets(title: str, lines: list[str]) -> dict[str, Any]:
    return _section(f"*{title}*\n" + "\n".join(f"• {line}" for line in lines))


def format_summary_for_slack(summary: StructuredSummary) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": summary.title or "Thread Summary"}},
        _section(f"*Overview*\n{summary.overview}"),
    ]

    if summary.decisions:
        blocks.append(_bullets("Decisions", summary.decisions))

    if summary.todos:
        todo_lines = []
        for todo in summary.todos:
            line = todo.text
            if todo.assignee:
                line += f" (<@{todo.assignee}>)"
            if todo.due:
                line += f" - due: {todo.due}"
            todo_lines.append(line)
        blocks.append(_bullets("TODOs", todo_lines))

    if summary.blockers:
        blocks.append(_bullets("Blockers", summary.blockers))

    if summary.tech_notes:
        blocks.append(_bullets("Technical Notes", summary.tech_notes))

    blocks.append({"type": "divider"})
    blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": SUMMARY_FOOTER_TEXT}]})
    return blocks
