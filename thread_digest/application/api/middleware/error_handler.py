"""
Error Handling - Middleware and Exception Handlers
==================================================

Every failure leaves the service in one envelope:

    {"status": "error", "errorCode": "...", "message": "..."}

MAPPING:
--------
| Exception                                   | HTTP | errorCode        |
|---------------------------------------------|------|------------------|
| RequestValidationError / ValidationError    | 400  | VALIDATION_ERROR |
| WorkspaceNotInstalledError                  | 401  | NOT_INSTALLED    |
| EmptyContentError                           | 404  | THREAD_NOT_FOUND |
| any other DigestBaseError                   | 500  | INTERNAL_ERROR   |
| anything else (ErrorHandlingMiddleware)     | 500  | INTERNAL_ERROR   |

SECURITY CONSIDERATION:
-----------------------
500 responses carry a fixed message. The real error is logged server-side
with the request ID; only development builds add the traceback.
"""

import traceback
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from thread_digest.core.config.constants import (
    ERROR_INTERNAL,
    ERROR_NOT_INSTALLED,
    ERROR_THREAD_NOT_FOUND,
    ERROR_VALIDATION,
)
from thread_digest.core.exceptions import (
    DigestBaseError,
    EmptyContentError,
    ValidationError,
    WorkspaceNotInstalledError,
)
from thread_digest.core.logging.logger import get_logger, get_request_id

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An error occurred while generating the summary"


def error_body(error_code: str, message: str) -> dict[str, str]:
    return {"status": "error", "errorCode": error_code, "message": message}


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defense for exceptions no exception handler claimed.
    """

    def __init__(self, app, include_traceback: bool = False):
        """
        Args:
            app: The ASGI application
            include_traceback: Add the traceback to 500 bodies (development only)
        """
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )

            body: dict = error_body(ERROR_INTERNAL, INTERNAL_ERROR_MESSAGE)
            if self.include_traceback:
                body["traceback"] = traceback.format_exc()
                body["detail"] = str(e)
            return JSONResponse(status_code=500, content=body)


# ============================================================================
# Exception Handlers
# ============================================================================


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Invalid request", stage="1.0", errors=exc.errors())
    return JSONResponse(status_code=400, content=error_body(ERROR_VALIDATION, "Invalid request parameters"))


async def domain_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Invalid request", stage="1.0", error=exc.message, details=exc.details)
    return JSONResponse(status_code=400, content=error_body(ERROR_VALIDATION, "Invalid request parameters"))


async def not_installed_handler(request: Request, exc: WorkspaceNotInstalledError) -> JSONResponse:
    logger.info("Workspace not installed", stage="1.3", details=exc.details)
    return JSONResponse(
        status_code=401,
        content=error_body(ERROR_NOT_INSTALLED, "Slack app is not installed for this workspace"),
    )


async def empty_content_handler(request: Request, exc: EmptyContentError) -> JSONResponse:
    logger.info("Thread has no messages", stage="3.1", details=exc.details)
    return JSONResponse(
        status_code=404, content=error_body(ERROR_THREAD_NOT_FOUND, "No messages found in this thread")
    )


async def digest_error_handler(request: Request, exc: DigestBaseError) -> JSONResponse:
    logger.error(
        "Error processing summary request",
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
        request_id=exc.request_id or get_request_id(),
    )
    return JSONResponse(status_code=500, content=error_body(ERROR_INTERNAL, INTERNAL_ERROR_MESSAGE))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handlers.

    Starlette picks the handler of the most specific class in the MRO, so the
    DigestBaseError catch-all never shadows the specific ones.
    """
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, domain_validation_handler)
    app.add_exception_handler(WorkspaceNotInstalledError, not_installed_handler)
    app.add_exception_handler(EmptyContentError, empty_content_handler)
    app.add_exception_handler(DigestBaseError, digest_error_handler)
