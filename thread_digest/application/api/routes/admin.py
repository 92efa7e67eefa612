"""
Admin Routes
============

Operational endpoints for the process-scoped caches:

- DELETE /admin/cache                 evict one server-side summary
- POST   /admin/caches/tokens/clear   drop cached bot tokens (one team or all)
- POST   /admin/caches/users/clear    drop cached display names
- PUT    /admin/installations/{team}  store a workspace bot token
- DELETE /admin/installations/{team}  remove it (app uninstalled)

These endpoints are meant for the internal network and test automation; put
them behind the ingress' authentication when exposing the service.
"""

from fastapi import APIRouter, Path, Query

from thread_digest.application.api.dependencies import SummaryStoreDep, TokenStoreDep, UserDirectoryDep
from thread_digest.application.api.models.admin import InstallationRequest
from thread_digest.core.config.constants import DEFAULT_LANGUAGE, SupportedLanguage
from thread_digest.core.exceptions import ValidationError
from thread_digest.core.logging.logger import get_logger
from thread_digest.infrastructure.cache.key_codec import derive_key, is_valid_slack_id

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.delete("/cache")
async def evict_summary(
    store: SummaryStoreDep,
    team_id: str = Query(..., min_length=1),
    channel_id: str = Query(..., min_length=1),
    thread_ts: str = Query(..., min_length=1),
    target_lang: SupportedLanguage = Query(DEFAULT_LANGUAGE),
):
    """
    Invalidate one cached summary.

    Malformed identifiers raise InvalidKeyComponentError (400).
    """
    cache_key = derive_key(team_id, channel_id, thread_ts, target_lang)
    if store is None:
        return {"status": "ok", "evicted": None, "reason": "caching disabled"}

    await store.evict(cache_key)
    logger.info("Summary evicted by admin", stage="ADMIN", cache_key=cache_key)
    return {"status": "ok", "evicted": cache_key}


@router.post("/caches/tokens/clear")
async def clear_token_cache(token_store: TokenStoreDep, team_id: str | None = Query(None)):
    if team_id:
        token_store.clear(team_id)
        cleared = 1
    else:
        cleared = token_store.clear_all()
    logger.info("Token cache cleared", stage="ADMIN", team_id=team_id, cleared=cleared)
    return {"status": "ok", "cleared": cleared}


@router.post("/caches/users/clear")
async def clear_user_cache(user_directory: UserDirectoryDep):
    cleared = user_directory.clear()
    logger.info("User name cache cleared", stage="ADMIN", cleared=cleared)
    return {"status": "ok", "cleared": cleared}


def _require_team_id(team_id: str) -> str:
    if not is_valid_slack_id(team_id):
        raise ValidationError("Invalid team id", details={"team_id": team_id})
    return team_id


@router.put("/installations/{team_id}")
async def save_installation(
    body: InstallationRequest,
    token_store: TokenStoreDep,
    team_id: str = Path(..., min_length=1),
):
    """
    Store the bot token of a workspace.

    Requires Redis; without it the write fails with a CacheError (500).
    """
    await token_store.save_token(_require_team_id(team_id), body.bot_token)
    logger.info("Installation saved by admin", stage="ADMIN", team_id=team_id)
    return {"status": "ok", "team_id": team_id}


@router.delete("/installations/{team_id}")
async def delete_installation(token_store: TokenStoreDep, team_id: str = Path(..., min_length=1)):
    removed = await token_store.delete_token(_require_team_id(team_id))
    logger.info("Installation removed by admin", stage="ADMIN", team_id=team_id, removed=removed)
    return {"status": "ok", "removed": removed}
