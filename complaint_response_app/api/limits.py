from __future__ import annotations

import os


def env_int(name: str, default: int) -> int:
    """Read ``name`` from the environment as an integer."""

    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):  # tolerate floats or junk values
        try:
            return int(float(str(raw)))
        except (TypeError, ValueError):
            return default


# External calls
COMPLAINTS_API_TIMEOUT_S = env_int("COMPLAINTS_API_TIMEOUT_S", 60)
IDENTITY_TIMEOUT_S = env_int("IDENTITY_TIMEOUT_S", 10)

# Draft store and uploads
DRAFT_TTL_S = env_int("DRAFT_TTL_S", 3600)
DRAFT_MAX_ITEMS = env_int("DRAFT_MAX_ITEMS", 512)
MAX_ATTACHMENT_BYTES = env_int("MAX_ATTACHMENT_BYTES", 10 * 1024 * 1024)


__all__ = [
    "COMPLAINTS_API_TIMEOUT_S",
    "IDENTITY_TIMEOUT_S",
    "DRAFT_TTL_S",
    "DRAFT_MAX_ITEMS",
    "MAX_ATTACHMENT_BYTES",
    "env_int",
]
