"""
Request ID Middleware

Binds a correlation ID to every request:
- taken from the X-Request-ID header when the caller sends one
- otherwise a fresh uuid4

The ID is placed in the logging context (every log line of the request
carries ``request_id``) and echoed back in the X-Request-ID response header.
"""

import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from thread_digest.core.config.constants import HEADER_REQUEST_ID
from thread_digest.core.logging.logger import clear_request_id, set_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()
