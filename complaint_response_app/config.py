from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from complaint_response_app.api.limits import (
    COMPLAINTS_API_TIMEOUT_S,
    DRAFT_MAX_ITEMS,
    DRAFT_TTL_S,
    IDENTITY_TIMEOUT_S,
    MAX_ATTACHMENT_BYTES,
)

load_dotenv()

DEFAULT_API_BASE = "http://localhost:7071"
DEFAULT_IDENTITY_BASE = "http://localhost:4280"
DEFAULT_ADMIN_CONTACT = "admin@contoso.com"
DEFAULT_TIME_FORMAT = "%d/%m/%Y, %H:%M:%S"

DRAFT_COOKIE = "cra_draft"


@dataclass(frozen=True)
class AppConfig:
    api_base: str = DEFAULT_API_BASE
    identity_base: str = DEFAULT_IDENTITY_BASE
    api_timeout_s: float = float(COMPLAINTS_API_TIMEOUT_S)
    identity_timeout_s: float = float(IDENTITY_TIMEOUT_S)
    admin_contact: str = DEFAULT_ADMIN_CONTACT
    listing_time_format: str = DEFAULT_TIME_FORMAT
    draft_ttl_s: int = DRAFT_TTL_S
    draft_max_items: int = DRAFT_MAX_ITEMS
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES
    audit_log_path: str = ""
    secure_cookies: bool = False


def _base_url(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip()
    return (raw or default).rstrip("/")


def load_app_config() -> AppConfig:
    """Build :class:`AppConfig` from the current environment.

    Called per application instance so tests can adjust the environment
    before creating an app.
    """

    log = logging.getLogger("complaint_response_app")
    cfg = AppConfig(
        api_base=_base_url("COMPLAINTS_API_BASE", DEFAULT_API_BASE),
        identity_base=_base_url("IDENTITY_BASE_URL", DEFAULT_IDENTITY_BASE),
        api_timeout_s=float(COMPLAINTS_API_TIMEOUT_S),
        identity_timeout_s=float(IDENTITY_TIMEOUT_S),
        admin_contact=(os.getenv("ADMIN_CONTACT") or DEFAULT_ADMIN_CONTACT).strip(),
        listing_time_format=os.getenv("LISTING_TIME_FORMAT") or DEFAULT_TIME_FORMAT,
        draft_ttl_s=DRAFT_TTL_S,
        draft_max_items=DRAFT_MAX_ITEMS,
        max_attachment_bytes=MAX_ATTACHMENT_BYTES,
        audit_log_path=(os.getenv("AUDIT_LOG_PATH") or "").strip(),
        secure_cookies=(os.getenv("SECURE_COOKIES", "") or "").strip().lower()
        in {"1", "true", "yes", "on"},
    )
    log.debug(
        "config loaded: api_base=%s identity_base=%s", cfg.api_base, cfg.identity_base
    )
    return cfg


__all__ = ["AppConfig", "DRAFT_COOKIE", "load_app_config"]
