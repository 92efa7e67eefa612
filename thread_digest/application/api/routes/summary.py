"""
Summary Routes
==============

POST {API_BASE_PATH}/summary
----------------------------
Request:
    {"channel_id": "C0123ABCD9", "thread_ts": "1700000000.000100",
     "team_id": "T0123ABCD9", "target_lang": "ja", "user_id": "U0123ABCD9"}

Response 200:
    {"status": "ok", "summary": {...}, "messageCount": 12, "cached": false}

Errors are raised as domain exceptions and rendered by the handlers in
middleware/error_handler.py (400/401/404/500).

The route itself holds no logic: the orchestrator owns key derivation,
installation lookup, the cache race and generation.
"""

from fastapi import APIRouter

from thread_digest.application.api.dependencies import OrchestratorDep
from thread_digest.application.api.models.summary import ErrorResponse, SummaryRequest, SummaryResponse
from thread_digest.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

router = APIRouter(tags=["Summary"])


@router.post(
    "/summary",
    response_model=SummaryResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request parameters"},
        401: {"model": ErrorResponse, "description": "Slack app not installed"},
        404: {"model": ErrorResponse, "description": "No messages in thread"},
        500: {"model": ErrorResponse, "description": "Generation failed"},
    },
)
async def create_summary(body: SummaryRequest, orchestrator: OrchestratorDep) -> SummaryResponse:
    """
    Summarize (or translate) a Slack thread.

    STAGE-1: Request accepted
    """
    log_stage(
        logger,
        "1.0",
        "Summary requested",
        team_id=body.team_id,
        channel_id=body.channel_id,
        thread_ts=body.thread_ts,
        target_lang=body.target_lang.value,
    )

    outcome = await orchestrator.resolve(body.team_id, body.channel_id, body.thread_ts, body.target_lang)

    log_stage(
        logger,
        "1.9",
        "Returning cached summary" if outcome.cached else "Returning new summary",
        message_count=outcome.message_count,
        cached=outcome.cached,
    )
    return SummaryResponse(
        summary=outcome.summary.to_wire(),
        message_count=outcome.message_count,
        cached=outcome.cached,
    )
