"""
Rate Limiter

Request rate limiting with slowapi.

- Default limit for every route: RATE_LIMIT_DEFAULT (e.g. "60/minute")
- Storage: RATE_LIMIT_STORAGE_URI ("memory://" or "redis://host:port/db")
- Identity: X-User-ID header, else the client address
- Exceeding the limit answers 429 with Retry-After
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from thread_digest.core.config.settings import Settings
from thread_digest.core.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 60


def get_client_identifier(request: Request) -> str:
    """X-User-ID header when present, otherwise the remote address."""
    user_id = request.headers.get("X-User-ID")
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Sync so SlowAPIMiddleware can call it directly."""
    logger.warning("Rate limit exceeded", stage="1.2", client=get_client_identifier(request))
    return JSONResponse(
        status_code=429,
        content={
            "status": "error",
            "errorCode": "RATE_LIMITED",
            "message": "Too many requests. Please try again later.",
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


def setup_rate_limiting(app: FastAPI, settings: Settings) -> Limiter:
    """
    Attach a Limiter to ``app`` (one per app so test apps never share counters).
    """
    rate_settings = settings.rate_limit
    limiter = Limiter(
        key_func=get_client_identifier,
        default_limits=[rate_settings.RATE_LIMIT_DEFAULT],
        storage_uri=rate_settings.RATE_LIMIT_STORAGE_URI,
        headers_enabled=False,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        "Rate limiting configured",
        default_limit=rate_settings.RATE_LIMIT_DEFAULT,
        storage=rate_settings.RATE_LIMIT_STORAGE_URI.split("://", 1)[0],
    )
    return limiter
