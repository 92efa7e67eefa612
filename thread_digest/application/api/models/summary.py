"""
Summary API Models

Request/response bodies of ``POST {API_BASE_PATH}/summary``.

Wire names follow the browser-extension contract: request fields are
snake_case, response fields camelCase (``messageCount``, ``techNotes``).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from thread_digest.core.config.constants import DEFAULT_LANGUAGE, SupportedLanguage


class SummaryRequest(BaseModel):
    """
    Body of a summary request.

    Identifier grammars (Slack ID shape, ``digits.digits`` timestamps) are
    checked by the key codec, which raises InvalidKeyComponentError (400).
    """

    channel_id: str = Field(..., min_length=1, description="Slack channel ID")
    thread_ts: str = Field(..., min_length=1, description="Thread parent timestamp")
    team_id: str = Field(..., min_length=1, description="Slack workspace (team) ID")
    target_lang: SupportedLanguage = Field(default=DEFAULT_LANGUAGE, description="Summary language")
    user_id: str | None = Field(default=None, description="Requesting Slack user")


class SummaryResponse(BaseModel):
    """Successful summary response."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    summary: dict[str, Any]
    message_count: int = Field(..., alias="messageCount")
    cached: bool = False


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["error"] = "error"
    error_code: str = Field(..., alias="errorCode")
    message: str
