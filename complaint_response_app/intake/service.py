from __future__ import annotations

import logging
import secrets
from typing import Optional

from complaint_response_app.core.audit import audit
from complaint_response_app.core.cache import TTLCache
from complaint_response_app.core.schemas import User
from complaint_response_app.integrations.complaints_api import (
    ComplaintsApiClient,
    ComplaintsApiError,
)

from .form import ComplaintForm

log = logging.getLogger("complaint_response_app")


class DraftStore:
    """Per-browser complaint forms, keyed by an opaque draft id."""

    def __init__(self, max_items: int = 512, ttl_s: int = 3600):
        self._cache = TTLCache(max_items=max_items, ttl_s=ttl_s)

    @staticmethod
    def new_id() -> str:
        return secrets.token_urlsafe(18)

    def get(self, draft_id: Optional[str]) -> Optional[ComplaintForm]:
        if not draft_id:
            return None
        return self._cache.get(draft_id)

    def get_or_create(self, draft_id: str) -> ComplaintForm:
        return self._cache.setdefault(draft_id, ComplaintForm)

    def discard(self, draft_id: str) -> None:
        self._cache.pop(draft_id)

    def __len__(self) -> int:
        return len(self._cache)


class IntakeService:
    """Runs form transitions around the complaints API calls.

    The form lock is held only while the form changes state, never across the
    HTTP call, so a second submit on the same draft sees ``SUBMITTING`` and is
    rejected instead of blocking.
    """

    def __init__(self, client: ComplaintsApiClient, audit_path: str = ""):
        self.client = client
        self.audit_path = audit_path

    def submit(
        self, form: ComplaintForm, cookie: Optional[str] = None, user: Optional[User] = None
    ) -> bool:
        with form.lock:
            ticket = form.begin_submit()
        try:
            result = self.client.process_complaint(ticket.request, cookie=cookie)
        except ComplaintsApiError as exc:
            log.error("processComplaint failed (seq=%s): %s", ticket.seq, exc)
            with form.lock:
                form.fail_submission(ticket)
            return False
        except Exception:
            # never leave the form stuck in SUBMITTING
            with form.lock:
                form.fail_submission(ticket)
            raise
        with form.lock:
            applied = form.apply_generation(ticket, result)
        if not applied:
            log.info("discarding stale generation result (seq=%s)", ticket.seq)
            return False
        audit(
            self.audit_path,
            "complaint_submitted",
            user.email if user else None,
            ticket.request.complaint,
            {"category": result.category, "tones": ticket.request.response_tones},
        )
        return True

    def save(
        self, form: ComplaintForm, cookie: Optional[str] = None, user: Optional[User] = None
    ) -> bool:
        with form.lock:
            request = form.begin_save()
        document = request.attachment.as_file_part() if request.attachment else None
        try:
            result = self.client.save_response(request.fields, document=document, cookie=cookie)
        except ComplaintsApiError as exc:
            log.error("saveResponse failed: %s", exc)
            with form.lock:
                form.fail_save()
            audit(
                self.audit_path,
                "response_save_failed",
                user.email if user else None,
                request.fields.get("complaint"),
                {"status": getattr(exc, "status", None)},
            )
            return False
        except Exception:
            with form.lock:
                form.fail_save()
            raise
        with form.lock:
            form.complete_save(result)
        audit(
            self.audit_path,
            "response_saved",
            user.email if user else None,
            request.fields.get("complaint"),
            {
                "response_id": result.response_id,
                "edited": request.fields["editedResponse"] != request.fields["originalResponse"],
                "category": request.fields["editedCategory"],
                "score": request.fields.get("responseScore"),
                "document": document is not None,
            },
        )
        return True


__all__ = ["DraftStore", "IntakeService"]
