"""Centralised error handlers for the FastAPI application.

JSON callers (paths under ``/api/``) get a small object with a single
``detail`` field. Browser pages get the plain message page so a failed
request never shows a bare stack trace.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from complaint_response_app.web.templating import templates

from .headers import apply_std_headers


log = logging.getLogger("complaint_response_app")


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/") or request.url.path == "/health"


def _respond(request: Request, detail: str, status: int):
    if _wants_json(request):
        resp = JSONResponse({"detail": detail}, status_code=status)
    else:
        resp = templates.TemplateResponse(
            request,
            "message.html",
            {"message": detail, "session": None, "page": None},
            status_code=status,
        )
    apply_std_headers(resp, request, getattr(request.state, "started_at", time.perf_counter()))
    return resp


def register_error_handlers(app: FastAPI) -> None:
    """Register standardised error handlers on the application."""

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        log.warning("validation error on %s: %s", request.url.path, exc)
        return _respond(request, "validation error", 422)

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "request failed"
        return _respond(request, detail, exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        log.exception("unhandled exception", exc_info=exc)
        return _respond(request, "internal error", 500)
