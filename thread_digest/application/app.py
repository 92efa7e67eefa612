#!/usr/bin/env python3
"""
FastAPI Application Entry Point

This is the main entry point for the Slack thread digest service.
It configures the FastAPI application, middleware, routes and the
components the routes depend on.

MIDDLEWARE ORDER (outermost first):
-----------------------------------
    RequestIDMiddleware      -> binds X-Request-ID before anything logs
    SlowAPIMiddleware        -> rejects over-limit clients with 429
    CORSMiddleware
    ErrorHandlingMiddleware  -> last-resort 500 envelope

Starlette runs the middleware added LAST first, so create_app() adds
them in reverse.

Author: System Architect
Date: 2025-12-05
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from thread_digest.application.api.middleware import (
    ErrorHandlingMiddleware,
    RequestIDMiddleware,
    register_exception_handlers,
)
from thread_digest.application.api.rate_limiter import setup_rate_limiting
from thread_digest.application.api.routes import admin_router, health_router, slack_router, summary_router
from thread_digest.core.config.constants import HEADER_REQUEST_ID
from thread_digest.core.config.settings import Settings, get_settings
from thread_digest.core.exceptions import CacheConnectionError
from thread_digest.core.logging import get_logger, setup_logging
from thread_digest.infrastructure.cache import LocalSummaryStore, RedisClient, RedisSummaryStore, close_redis, init_redis
from thread_digest.llm import GeminiGateway
from thread_digest.services import InFlightRegistry, SummaryOrchestrator, get_fingerprint_strategy
from thread_digest.slack import InstallationTokenStore, SlackContentSourceProvider, UserDirectory

logger = get_logger(__name__)


# ============================================================================
# Component Wiring
# ============================================================================

def build_components(settings: Settings, redis_client: RedisClient | None) -> dict[str, Any]:
    """
    Build the long-lived components from settings.

    STAGE-0.5: Component wiring

    Args:
        settings: Application settings
        redis_client: Connected Redis client, or None when Redis is unavailable
            and the local backend is in use

    Returns:
        dict: Components keyed by their ``app.state`` attribute name
    """
    cache_settings = settings.cache
    slack_settings = settings.slack

    store = None
    if cache_settings.ENABLE_CACHING:
        if cache_settings.SUMMARY_CACHE_BACKEND == "redis":
            store = RedisSummaryStore(redis_client, ttl_days=cache_settings.SUMMARY_CACHE_TTL_DAYS)
        else:
            store = LocalSummaryStore(
                max_entries=cache_settings.LOCAL_CACHE_MAX_ENTRIES,
                ttl_days=cache_settings.LOCAL_CACHE_TTL_DAYS,
                path=cache_settings.LOCAL_CACHE_PATH,
            )

    token_store = InstallationTokenStore(
        redis_client,
        fallback_token=slack_settings.SLACK_BOT_TOKEN,
        ttl_seconds=slack_settings.SLACK_TOKEN_CACHE_TTL,
    )
    user_directory = UserDirectory(ttl_seconds=slack_settings.SLACK_USER_CACHE_TTL)
    content_sources = SlackContentSourceProvider(
        token_store, user_directory, max_messages=slack_settings.MAX_THREAD_MESSAGES
    )

    orchestrator = SummaryOrchestrator(
        store,
        content_sources,
        GeminiGateway.from_settings(settings),
        fingerprint=get_fingerprint_strategy(cache_settings.CACHE_FINGERPRINT_STRATEGY),
        generation_timeout=settings.llm.GENERATION_TIMEOUT_SECONDS,
        inflight=InFlightRegistry() if cache_settings.ENABLE_INFLIGHT_DEDUP else None,
    )

    return {
        "summary_store": store,
        "token_store": token_store,
        "user_directory": user_directory,
        "orchestrator": orchestrator,
    }


# ============================================================================
# Application Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting Slack thread digest service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        cache_backend=settings.cache.SUMMARY_CACHE_BACKEND if settings.cache.ENABLE_CACHING else "disabled",
    )

    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("Redis connected")
    except CacheConnectionError:
        # Installation records and the durable store both live in Redis
        if settings.cache.ENABLE_CACHING and settings.cache.SUMMARY_CACHE_BACKEND == "redis":
            raise
        logger.warning("Redis unavailable, falling back to SLACK_BOT_TOKEN for installations")

    components = build_components(settings, redis_client)
    for name, component in components.items():
        setattr(app.state, name, component)
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Shutting down application")

        await components["orchestrator"].drain()
        store = components["summary_store"]
        if isinstance(store, RedisSummaryStore):
            await store.drain()
        await close_redis()

        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================

def create_app(settings: Settings | None = None, use_lifespan: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings override (defaults to the global settings)
        use_lifespan: Tests pass False and put fakes on ``app.state`` instead

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Cached, multilingual summaries of Slack threads",
        lifespan=lifespan if use_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(ErrorHandlingMiddleware, include_traceback=settings.app.ENVIRONMENT == "development")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID],
    )

    setup_rate_limiting(app, settings)

    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(summary_router, prefix=settings.app.API_BASE_PATH)
    app.include_router(admin_router, prefix=settings.app.API_BASE_PATH)
    app.include_router(slack_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create application instance
app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

def main() -> None:
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "thread_digest.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
