from .session import (
    SessionState,
    SessionStatus,
    is_authorized,
    login_url,
    logout_url,
    resolve_session,
)

__all__ = [
    "SessionState",
    "SessionStatus",
    "is_authorized",
    "login_url",
    "logout_url",
    "resolve_session",
]
