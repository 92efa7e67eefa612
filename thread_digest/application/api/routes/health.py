"""
Health Check Routes
===================

KUBERNETES HEALTH PROBES:
-------------------------
1. LIVENESS (GET /health):
   - Question: "Is the process running?"
   - Never touches Redis or Gemini

2. READINESS (GET /health/ready):
   - Question: "Can this instance serve summaries?"
   - Checks the summary store; 503 when it reports unhealthy
   - With ENABLE_CACHING=false there is nothing to check and the answer is ready
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from thread_digest.application.api.dependencies import SettingsDep, SummaryStoreDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str | None = None
    components: dict | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """
    Liveness probe for load balancers.

    Returns:
        HealthResponse: Always "healthy" while the event loop answers
    """
    return HealthResponse(status="healthy", timestamp=_now_iso(), version=settings.app.APP_VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness_probe(store: SummaryStoreDep):
    """
    Readiness probe.

    HTTP Status Codes:
        200: Summary store reachable (or caching disabled)
        503: Summary store unhealthy
    """
    if store is None:
        return HealthResponse(status="ready", timestamp=_now_iso(), components={"summary_store": "disabled"})

    store_health = await store.health_check()
    if store_health.get("status") != "healthy":
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="not_ready", timestamp=_now_iso(), components={"summary_store": store_health}
            ).model_dump(),
        )

    return HealthResponse(status="ready", timestamp=_now_iso(), components={"summary_store": store_health})
