"""
Slack Slash Command Routes
==========================

POST /slack/commands  (application/x-www-form-urlencoded, sent by Slack)
------------------------------------------------------------------------
    /summarize <message link | thread ts> [language]

Slack waits at most three seconds for the HTTP answer, so the route only
acknowledges with an ephemeral "please wait" message. Generation runs as a
background task that posts the Block Kit summary (or a short failure text)
to the command's ``response_url``.

┌──────────────────────────────────────────────────────────────┐
│ 1. Verify the signature (when SLACK_SIGNING_SECRET is set)   │
│ 2. Parse thread reference + language from the command text   │
│ 3. Ack: usage text, or "Summarizing thread..."               │
│ 4. Background: orchestrator.resolve() → response_url         │
└──────────────────────────────────────────────────────────────┘

Every reply is ephemeral: only the user who ran the command sees it.
"""

import asyncio
from typing import Any

import aiohttp
from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from slack_sdk.signature import SignatureVerifier
from slack_sdk.webhook.async_client import AsyncWebhookClient

from thread_digest.application.api.dependencies import OrchestratorDep, SettingsDep
from thread_digest.core.config.constants import (
    COMMAND_EMPTY_TEXT,
    COMMAND_FAILED_TEXT,
    COMMAND_NOT_INSTALLED_TEXT,
    COMMAND_PENDING_TEXT,
    COMMAND_USAGE_TEXT,
)
from thread_digest.core.exceptions import (
    EmptyContentError,
    InvalidKeyComponentError,
    WorkspaceNotInstalledError,
)
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.services.summary_orchestrator import SummaryOrchestrator
from thread_digest.slack.formatting import ThreadReference, format_summary_for_slack, parse_command_text

logger = get_logger(__name__)

router = APIRouter(prefix="/slack", tags=["Slack"])


def ephemeral(text: str) -> dict[str, str]:
    return {"response_type": "ephemeral", "text": text}


@router.post("/commands")
async def summarize_command(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: OrchestratorDep,
    settings: SettingsDep,
):
    """
    Handle ``/summarize``.

    STAGE-1: Command accepted
    """
    raw_body = await request.body()

    secret = settings.slack.SLACK_SIGNING_SECRET
    if secret and not SignatureVerifier(secret).is_valid_request(raw_body, dict(request.headers)):
        log_stage(logger, "1.0", "Slash command signature rejected", level="warning")
        return JSONResponse(status_code=401, content=ephemeral("Invalid request signature"))

    form = await request.form()
    team_id = str(form.get("team_id", ""))
    response_url = str(form.get("response_url", ""))
    reference = parse_command_text(str(form.get("text", "")))
    channel_id = reference.channel_id or str(form.get("channel_id", ""))

    log_stage(
        logger,
        "1.0",
        "Slash command received",
        team_id=team_id,
        channel_id=channel_id,
        thread_ts=reference.thread_ts,
        target_lang=reference.language.value,
    )

    if not reference.thread_ts or not response_url:
        return ephemeral(COMMAND_USAGE_TEXT)

    background_tasks.add_task(
        deliver_summary,
        orchestrator,
        team_id,
        ThreadReference(channel_id, reference.thread_ts, reference.language),
        response_url,
    )
    return ephemeral(COMMAND_PENDING_TEXT)


async def deliver_summary(
    orchestrator: SummaryOrchestrator,
    team_id: str,
    reference: ThreadReference,
    response_url: str,
) -> None:
    """
    Resolve the summary and post it to ``response_url``.

    Failures become short ephemeral texts; internal details only reach the logs.
    """
    reply: dict[str, Any]
    try:
        outcome = await orchestrator.resolve(team_id, reference.channel_id, reference.thread_ts, reference.language)
    except InvalidKeyComponentError as e:
        log_stage(logger, "1.1", "Slash command with invalid thread reference", level="warning", error=e.message)
        reply = {"text": COMMAND_USAGE_TEXT}
    except WorkspaceNotInstalledError:
        reply = {"text": COMMAND_NOT_INSTALLED_TEXT}
    except EmptyContentError:
        reply = {"text": COMMAND_EMPTY_TEXT}
    except Exception as e:
        logger.error(
            "Error processing summarize command",
            error_type=type(e).__name__,
            error=str(e),
            exc_info=True,
        )
        reply = {"text": COMMAND_FAILED_TEXT}
    else:
        summary = outcome.summary
        reply = {"text": summary.title or summary.overview, "blocks": format_summary_for_slack(summary)}

    webhook = AsyncWebhookClient(response_url)
    try:
        response = await webhook.send(response_type="ephemeral", **reply)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        log_stage(logger, "5.3", "Slash command reply failed", level="error", error=str(e))
        return

    log_stage(logger, "5.3", "Slash command reply sent", status_code=response.status_code)
