"""
FastAPI Dependency Injection Module
===================================

HOW IT WORKS:
-------------
The lifespan handler in application/app.py builds every long-lived component
once (orchestrator, summary store, token store, user directory) and stores it
on ``app.state``. The functions below hand those instances to route handlers:

    @router.post("/summary")
    async def create_summary(body: SummaryRequest, orchestrator: OrchestratorDep):
        ...

WHY app.state?
--------------
- The components are tied to the app instance instead of module globals
- Tests build an app, put fakes on ``app.state`` and never start the lifespan
- Every request shares the same instances (and therefore the same caches)

A component that was never initialized is a wiring bug; the dependency
raises ConfigurationError, which the error handler turns into a 500.
"""

from typing import Annotated, Any

from fastapi import Depends, Request

from thread_digest.core.config.settings import Settings, get_settings
from thread_digest.core.exceptions import ConfigurationError
from thread_digest.core.interfaces import CacheStore
from thread_digest.services.summary_orchestrator import SummaryOrchestrator
from thread_digest.slack.token_store import InstallationTokenStore
from thread_digest.slack.user_directory import UserDirectory


def _from_state(request: Request, name: str) -> Any:
    component = getattr(request.app.state, name, None)
    if component is None:
        raise ConfigurationError(f"{name} is not initialized", details={"component": name})
    return component


def get_orchestrator(request: Request) -> SummaryOrchestrator:
    """Retrieve the SummaryOrchestrator built at startup."""
    return _from_state(request, "orchestrator")


def get_summary_store(request: Request) -> CacheStore | None:
    """
    Retrieve the server-side summary store.

    Returns None when caching is disabled (ENABLE_CACHING=false).
    """
    return getattr(request.app.state, "summary_store", None)


def get_token_store(request: Request) -> InstallationTokenStore:
    return _from_state(request, "token_store")


def get_user_directory(request: Request) -> UserDirectory:
    return _from_state(request, "user_directory")


def get_app_settings() -> Settings:
    return get_settings()


# ============================================================================
# TYPE ALIASES
# ============================================================================
# Annotated[Type, Depends(provider)] keeps route signatures short:
#     async def route(orchestrator: OrchestratorDep): ...

OrchestratorDep = Annotated[SummaryOrchestrator, Depends(get_orchestrator)]
SummaryStoreDep = Annotated[CacheStore | None, Depends(get_summary_store)]
TokenStoreDep = Annotated[InstallationTokenStore, Depends(get_token_store)]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
