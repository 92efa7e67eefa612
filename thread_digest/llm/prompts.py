"""
Prompt Builders

Plain-text prompts for the two generation modes:

- Summary: the newest MAX_MESSAGES_FOR_PROMPT messages as "name: text" lines
- Translation: the text of a single message

Both ask for a JSON object of the form {"overview": "..."}; the remaining
StructuredSummary fields are optional and default to empty.
"""

from collections.abc import Sequence

from thread_digest.core.config.constants import (
    LANGUAGE_NAMES,
    MAX_MESSAGES_FOR_PROMPT,
    SupportedLanguage,
)
from thread_digest.core.models import ContentItem


def language_name(language: str | SupportedLanguage) -> str:
    code = language.value if isinstance(language, SupportedLanguage) else language
    return LANGUAGE_NAMES[code]


def build_summary_prompt(
    items: Sequence[ContentItem],
    language: str | SupportedLanguage,
    max_messages: int = MAX_MESSAGES_FOR_PROMPT,
) -> str:
    """
    Build the thread summary prompt.

    Only the last ``max_messages`` items are included to bound input tokens.
    """
    limited = list(items)[-max_messages:] if max_messages > 0 else []
    thread_content = "\n".join(f"{item.user_name}: {item.text}" for item in limited)

    return (
        f"Summarize this Slack thread in {language_name(language)} "
        "for someone who doesn't speak the original language.\n"
        "\n"
        "Guidelines:\n"
        "- 3-5 sentences\n"
        "- Include: main topic, key conclusion or decision (if any), next steps (if any)\n"
        "- Be concise but informative\n"
        "\n"
        'Output as JSON: {"overview": "your summary"}\n'
        "\n"
        "Thread:\n"
        f"{thread_content}"
    )


def build_translation_prompt(item: ContentItem, language: str | SupportedLanguage) -> str:
    return (
        f"Translate this Slack message to {language_name(language)}. "
        "Preserve tone and meaning.\n"
        "\n"
        'Output as JSON: {"overview": "translated message"}\n'
        "\n"
        f"{item.text}"
    )
