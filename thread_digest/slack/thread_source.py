"""
Slack Thread Source

Reads thread messages with slack_sdk's AsyncWebClient and turns them into
ContentItems for the orchestrator.

Filtering:
- messages without text or ts are dropped
- bot-authored messages (``bot_id`` set) are dropped

Author names are resolved in parallel through the shared UserDirectory.

STAGE-3: Content fetch
"""

import asyncio

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from thread_digest.core.config.constants import MAX_THREAD_MESSAGES
from thread_digest.core.exceptions import ContentSourceError, WorkspaceNotInstalledError
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.core.models import ContentItem
from thread_digest.slack.token_store import InstallationTokenStore
from thread_digest.slack.user_directory import UserDirectory

logger = get_logger(__name__)

# conversations.replies errors that mean "nothing to summarize"
_MISSING_THREAD_ERRORS = frozenset({"thread_not_found", "message_not_found"})


class SlackThreadSource:
    """ContentSource bound to one workspace's bot token."""

    def __init__(
        self,
        client: AsyncWebClient,
        team_id: str,
        user_directory: UserDirectory,
        max_messages: int = MAX_THREAD_MESSAGES,
    ):
        self._client = client
        self._team_id = team_id
        self._users = user_directory
        self._max_messages = max_messages

    async def fetch_content(self, scope_id: str, anchor_id: str) -> list[ContentItem]:
        """
        Fetch the human-authored messages of a thread, oldest first.

        Raises:
            ContentSourceError: If Slack cannot be reached or rejects the call
        """
        log_stage(logger, "3.1", "Fetching thread messages", channel_id=scope_id, thread_ts=anchor_id)
        try:
            response = await self._client.conversations_replies(
                channel=scope_id, ts=anchor_id, limit=self._max_messages
            )
        except SlackApiError as e:
            error_code = e.response.get("error") if e.response is not None else None
            if error_code in _MISSING_THREAD_ERRORS:
                log_stage(logger, "3.1", "Thread not found", level="info", channel_id=scope_id, error=error_code)
                return []
            raise ContentSourceError.from_exception(
                e, message="Slack conversations.replies failed", channel_id=scope_id, slack_error=error_code
            ) from e
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ContentSourceError.from_exception(
                e, message="Slack is unreachable", channel_id=scope_id
            ) from e

        raw_messages = response.get("messages") or []
        valid = [m for m in raw_messages if m.get("text") and m.get("ts") and not m.get("bot_id")]

        user_ids = list(dict.fromkeys(m["user"] for m in valid if m.get("user")))
        names = await asyncio.gather(
            *(self._users.resolve(self._client, self._team_id, user_id) for user_id in user_ids)
        )
        name_by_id = dict(zip(user_ids, names))

        items = [
            ContentItem(
                user_id=m.get("user") or "unknown",
                user_name=name_by_id.get(m.get("user"), "Unknown") if m.get("user") else "Unknown",
                text=m["text"],
                timestamp=m["ts"],
                thread_ts=m.get("thread_ts"),
            )
            for m in valid
        ]

        log_stage(
            logger,
            "3.1",
            "Fetched thread messages",
            channel_id=scope_id,
            fetched=len(raw_messages),
            kept=len(items),
        )
        return items


class SlackContentSourceProvider:
    """
    Builds a SlackThreadSource per workspace from its installation token.

    Raises WorkspaceNotInstalledError when the workspace has no bot token.
    """

    def __init__(
        self,
        token_store: InstallationTokenStore,
        user_directory: UserDirectory,
        max_messages: int = MAX_THREAD_MESSAGES,
    ):
        self._tokens = token_store
        self._users = user_directory
        self._max_messages = max_messages

    async def for_workspace(self, workspace_id: str) -> SlackThreadSource:
        token = await self._tokens.get_token(workspace_id)
        if not token:
            raise WorkspaceNotInstalledError(
                "Slack app is not installed for this workspace", details={"team_id": workspace_id}
            )
        return SlackThreadSource(
            AsyncWebClient(token=token), workspace_id, self._users, self._max_messages
        )
