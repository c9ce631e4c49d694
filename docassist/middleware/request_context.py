"""
Document AI Assistant — Request Context Middleware
===================================================

What:  Per-request correlation id plus one structured access-log entry.
How:   The request id lives in a ContextVar so any logger in the request can
       read it. The owner id is written to request.state by the security
       dependency; request.state is shared with the handler's scope, so the
       middleware can read it back after the response is produced.

Log line:
    POST /api/folders 201 12.4ms [a1b2c3d4] owner=5f0c... from 10.0.0.7

Request bodies are never logged: documents and transcripts are user content.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

access_logger = logging.getLogger("docassist.access")

QUIET_PATHS = {"/health"}


def _status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns X-Request-ID (client-supplied or a short uuid) and logs the
    request outcome with duration and owner.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        path = request.url.path
        if path in QUIET_PATHS:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        owner = getattr(request.state, "owner_id", "-")
        client_ip = request.client.host if request.client else "unknown"
        access_logger.log(
            _status_level(response.status_code),
            "%s %s %d %.1fms [%s] owner=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            owner,
            client_ip,
            extra={
                "request_id": rid,
                "owner_id": owner,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
