from thread_digest.application.api.routes.admin import router as admin_router
from thread_digest.application.api.routes.health import router as health_router
from thread_digest.application.api.routes.slack_commands import router as slack_router
from thread_digest.application.api.routes.summary import router as summary_router

__all__ = ["admin_router", "health_router", "slack_router", "summary_router"]
