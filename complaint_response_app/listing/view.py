from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from complaint_response_app.auth.session import SessionState, is_authorized
from complaint_response_app.core.schemas import LISTING_ROLES, SavedResponseRecord
from complaint_response_app.integrations.complaints_api import (
    ComplaintsApiClient,
    ComplaintsApiError,
)

log = logging.getLogger("complaint_response_app")

LOGIN_REQUIRED_MESSAGE = "Please log in to view saved responses."
LOAD_FAILED_MESSAGE = "Failed to load saved responses."
EMPTY_MESSAGE = "No saved responses found."

_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def not_authorized_message(contact: str) -> str:
    return f"You are not authorized to access this page. Please contact {contact}."


class ListingStatus(str, enum.Enum):
    LOGIN_REQUIRED = "login_required"
    FORBIDDEN = "forbidden"
    FAILED = "failed"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class ListingRow:
    response_id: str
    complaint: str
    edited_response: str
    category: str
    saved_at: str
    document_url: Optional[str] = None

    @property
    def has_document(self) -> bool:
        """Only http(s) links are rendered as downloads."""
        url = (self.document_url or "").strip().lower()
        return url.startswith(("https://", "http://"))


@dataclass(frozen=True)
class ListingPage:
    status: ListingStatus
    message: str = ""
    rows: List[ListingRow] = field(default_factory=list)


def format_saved_at(raw: str, fmt: str) -> str:
    """Render an ISO-8601 timestamp with ``fmt``; unparseable values pass through."""
    if not raw:
        return ""
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    value = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", value)
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return raw
    return ts.strftime(fmt)


def to_row(record: SavedResponseRecord, time_format: str) -> ListingRow:
    return ListingRow(
        response_id=record.response_id,
        complaint=record.complaint,
        edited_response=record.edited_response,
        category=record.edited_category,
        saved_at=format_saved_at(record.saved_at, time_format),
        document_url=record.document_url,
    )


def build_listing(
    session: SessionState,
    client: ComplaintsApiClient,
    *,
    cookie: Optional[str] = None,
    time_format: str = "%d/%m/%Y, %H:%M:%S",
    admin_contact: str = "admin@contoso.com",
) -> ListingPage:
    """Gate on roles, then fetch and shape saved records for the table.

    No request is made for anonymous or unauthorized users.
    """
    if not session.is_authenticated:
        return ListingPage(ListingStatus.LOGIN_REQUIRED, LOGIN_REQUIRED_MESSAGE)
    if not is_authorized(session.user, LISTING_ROLES):
        return ListingPage(ListingStatus.FORBIDDEN, not_authorized_message(admin_contact))
    try:
        records = client.get_saved_responses(cookie=cookie)
    except ComplaintsApiError as exc:
        log.error("GetSavedResponses failed: %s", exc)
        return ListingPage(ListingStatus.FAILED, LOAD_FAILED_MESSAGE)
    if not records:
        return ListingPage(ListingStatus.EMPTY, EMPTY_MESSAGE)
    return ListingPage(
        ListingStatus.READY, rows=[to_row(r, time_format) for r in records]
    )


__all__ = [
    "EMPTY_MESSAGE",
    "LOAD_FAILED_MESSAGE",
    "LOGIN_REQUIRED_MESSAGE",
    "ListingPage",
    "ListingRow",
    "ListingStatus",
    "build_listing",
    "format_saved_at",
    "not_authorized_message",
    "to_row",
]
