from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .headers import apply_std_headers, request_cid


class TraceHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp each request with a correlation id and standard response headers."""

    async def dispatch(self, request: Request, call_next):
        request.state.cid = request_cid(request)
        request.state.started_at = time.perf_counter()
        response = await call_next(request)
        apply_std_headers(response, request, request.state.started_at)
        return response
