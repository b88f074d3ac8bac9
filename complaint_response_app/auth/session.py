"""Session resolution against the platform identity endpoint.

The identity provider owns sign-in entirely; this module only asks
``/.auth/me`` who the caller is and turns the answer into a :class:`User`.
Role checks here decide what a page renders and are not an access control:
the complaints API must authorize every call on its own.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from complaint_response_app.core.schemas import ClientPrincipal, User

log = logging.getLogger("complaint_response_app")

ME_PATH = "/.auth/me"
LOGIN_PATH = "/.auth/login/aad"
LOGOUT_PATH = "/.auth/logout"

SESSION_ERROR_MESSAGE = "Error fetching user info."


class IdentityError(Exception):
    """The identity endpoint could not be reached or answered garbage."""


class SessionStatus(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    ERROR = "error"


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    user: Optional[User] = None
    error: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED and self.user is not None

    def to_dict(self) -> Dict[str, Any]:
        user = None
        if self.user is not None:
            user = {
                "name": self.user.name,
                "email": self.user.email,
                "roles": sorted(self.user.roles),
                "permissions": self.user.permissions,
            }
        return {"status": self.status.value, "user": user, "error": self.error or None}


ANONYMOUS = SessionState(SessionStatus.UNAUTHENTICATED)


def user_from_principal(raw: Dict[str, Any]) -> User:
    """Decode a ``clientPrincipal`` object into a :class:`User`.

    The email falls back to the opaque ``userId`` when no ``emails`` claim is
    present; ``roles`` claims are plural and joined for display.
    """

    principal = ClientPrincipal.model_validate(raw)
    emails = principal.claim_values("emails")
    return User(
        name=principal.user_details,
        email=emails[0] if emails and emails[0] else principal.user_id,
        roles=frozenset(principal.user_roles),
        permissions=", ".join(principal.claim_values("roles")),
    )


def fetch_client_principal(
    identity_base: str, cookie: Optional[str] = None, timeout_s: float = 10.0
) -> Optional[Dict[str, Any]]:
    """Return the raw ``clientPrincipal`` or ``None`` when not signed in.

    Raises :class:`IdentityError` on transport failures and unreadable bodies.
    """

    headers = {"Accept": "application/json"}
    if cookie:
        headers["Cookie"] = cookie
    url = f"{identity_base.rstrip('/')}{ME_PATH}"
    try:
        resp = httpx.get(url, headers=headers, timeout=timeout_s)
    except httpx.HTTPError as e:
        raise IdentityError(f"identity transport error: {e}") from e
    if not resp.is_success:
        log.info("identity endpoint returned %s; treating as signed out", resp.status_code)
        return None
    try:
        data = resp.json()
    except ValueError as e:
        raise IdentityError("identity response is not JSON") from e
    if not isinstance(data, dict):
        raise IdentityError("identity response is not an object")
    principal = data.get("clientPrincipal")
    if principal is None:
        return None
    if not isinstance(principal, dict):
        raise IdentityError("clientPrincipal is not an object")
    return principal


def resolve_session(
    identity_base: str, cookie: Optional[str] = None, timeout_s: float = 10.0
) -> SessionState:
    """Resolve the caller's session once; never raises."""

    try:
        principal = fetch_client_principal(identity_base, cookie, timeout_s)
        if principal is None:
            return ANONYMOUS
        user = user_from_principal(principal)
    except (IdentityError, ValidationError) as exc:
        log.error("failed to resolve session: %s", exc)
        return SessionState(SessionStatus.ERROR, error=SESSION_ERROR_MESSAGE)
    return SessionState(SessionStatus.AUTHENTICATED, user=user)


def is_authorized(user: Optional[User], allowed_roles: Iterable[str]) -> bool:
    return user is not None and user.has_any_role(frozenset(allowed_roles))


def login_url() -> str:
    return LOGIN_PATH


def logout_url(post_logout_redirect_uri: str = "/") -> str:
    return f"{LOGOUT_PATH}?{urlencode({'post_logout_redirect_uri': post_logout_redirect_uri}, safe='/')}"


__all__ = [
    "ANONYMOUS",
    "IdentityError",
    "SESSION_ERROR_MESSAGE",
    "SessionState",
    "SessionStatus",
    "fetch_client_principal",
    "is_authorized",
    "login_url",
    "logout_url",
    "resolve_session",
    "user_from_principal",
]
