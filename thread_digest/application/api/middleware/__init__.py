from thread_digest.application.api.middleware.error_handler import (
    ErrorHandlingMiddleware,
    register_exception_handlers,
)
from thread_digest.application.api.middleware.request_id import RequestIDMiddleware

__all__ = ["ErrorHandlingMiddleware", "RequestIDMiddleware", "register_exception_handlers"]
