from __future__ import annotations

"""Central logging configuration using loguru and optional Sentry."""

import logging
import os
import sys

from loguru import logger


class _InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def init_logging() -> logger.__class__:
    """Configure loguru logger and optional Sentry integration.

    The log level is controlled by the ``CRA_DEBUG`` environment variable.
    Records from the stdlib ``complaint_response_app`` logger are routed
    through loguru. When ``SENTRY_DSN`` is provided, Sentry is initialised
    for error reporting.
    """
    debug = os.getenv("CRA_DEBUG") == "1"
    logger.remove()
    logger.add(
        sys.stderr, level="DEBUG" if debug else "INFO", backtrace=True, diagnose=debug
    )

    app_log = logging.getLogger("complaint_response_app")
    app_log.setLevel(logging.DEBUG if debug else logging.INFO)
    if not any(isinstance(h, _InterceptHandler) for h in app_log.handlers):
        app_log.addHandler(_InterceptHandler())

    dsn = os.getenv("SENTRY_DSN")
    if dsn:
        try:  # optional extra
            import sentry_sdk

            sentry_sdk.init(dsn=dsn)
            logger.debug("Sentry initialised")
        except ImportError as e:  # pragma: no cover - diagnostics only
            logger.warning("Failed to init Sentry: {0}", e)

    return logger


__all__ = ["init_logging", "logger"]
