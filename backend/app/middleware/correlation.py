"""
Correlation ID middleware
=========================
Tags every request with an X-Correlation-ID (taken from the client or
generated) so all log lines for one HTTP call can be grouped. X-Tab-ID is
echoed back when the client sends one.
"""
from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        tab_id = request.headers.get("X-Tab-ID", "")

        request.state.correlation_id = correlation_id
        request.state.tab_id = tab_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)",
            extra={
                "correlation_id": correlation_id,
                "tab_id": tab_id or None,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )

        response.headers["X-Correlation-ID"] = correlation_id
        if tab_id:
            response.headers["X-Tab-ID"] = tab_id

        return response
