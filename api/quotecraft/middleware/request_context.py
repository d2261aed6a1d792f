"""Request id and timing middleware.

Every request gets an id (taken from ``X-Request-ID`` when the client sends
one), which is stored on ``request.state`` and in the logging context so that
all log records emitted while handling the request carry it.
"""

from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, log the request and time the response."""

    def __init__(self, app: ASGIApp, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "")[:MAX_REQUEST_ID_LENGTH] or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
            processing_time_ms = int((time.time() - start_time) * 1000)

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Processing-Time-Ms"] = str(processing_time_ms)

            if self.log_requests:
                logger.info(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "processing_time_ms": processing_time_ms,
                    },
                )
            return response
        finally:
            request_id_var.reset(token)
