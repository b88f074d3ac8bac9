"""Complaint submission form and its draft lifecycle.

States::

    IDLE -> SUBMITTING -> DRAFTED -> SAVING -> SAVED | SAVE_FAILED
                 |                                 (edit) -> DRAFTED
                 +-> SUBMIT_FAILED

Every mutable draft attribute is held twice: the value the generator
returned (``generated_*``) and the value the reviewer is working on
(``edited_*``). ``reset`` copies the first over the second.

The form does no I/O. ``begin_submit``/``begin_save`` hand back the payload
to send; the caller reports the outcome through ``apply_generation``,
``fail_submission``, ``complete_save`` or ``fail_save``.
"""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from complaint_response_app.core.schemas import (
    ATTACHMENT_EXTENSIONS,
    CATEGORIES,
    SCORES,
    TONES,
    GenerationRequest,
    GenerationResult,
    SaveResult,
)

SUBMIT_FAILED_MESSAGE = "Failed to process complaint. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save response."
SAVING_MESSAGE = "Saving..."


class FormState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUBMIT_FAILED = "submit_failed"
    DRAFTED = "drafted"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


DRAFT_STATES = frozenset(
    {FormState.DRAFTED, FormState.SAVING, FormState.SAVED, FormState.SAVE_FAILED}
)
RESETTABLE_STATES = frozenset({FormState.DRAFTED, FormState.SAVED, FormState.SAVE_FAILED})


class FormStateError(Exception):
    """Operation not allowed in the form's current state."""


class SubmitInProgressError(FormStateError):
    pass


class SaveInProgressError(FormStateError):
    pass


class NoDraftError(FormStateError):
    pass


class FormValidationError(ValueError):
    """A field value is outside what the form accepts."""


class EmptyComplaintError(FormValidationError):
    pass


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    def __post_init__(self):
        if not self.filename.lower().endswith(ATTACHMENT_EXTENSIONS):
            raise FormValidationError(
                f"unsupported attachment type: {self.filename!r}; "
                f"allowed: {', '.join(ATTACHMENT_EXTENSIONS)}"
            )

    def as_file_part(self):
        return (self.filename, self.content, self.content_type)


@dataclass(frozen=True)
class SubmissionTicket:
    """One outgoing generation request; ``seq`` identifies it."""

    seq: int
    request: GenerationRequest


@dataclass(frozen=True)
class SaveRequest:
    fields: Dict[str, str]
    attachment: Optional[Attachment] = None


def normalize_tones(tones: Iterable[str]) -> Set[str]:
    selected = set()
    for tone in tones:
        tone = (tone or "").strip()
        if not tone:
            continue
        if tone not in TONES:
            raise FormValidationError(f"unknown tone: {tone!r}")
        selected.add(tone)
    return selected


def parse_score(raw) -> Optional[int]:
    """Accept ``None``/blank as "no score", otherwise an int from 1 to 5."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        score = int(raw)
    except (TypeError, ValueError):
        raise FormValidationError(f"score must be a number, got {raw!r}") from None
    if score not in SCORES:
        raise FormValidationError(f"score must be one of {list(SCORES)}, got {score}")
    return score


@dataclass
class ComplaintForm:
    complaint_text: str = ""
    findings_text: str = ""
    tone_selections: Set[str] = field(default_factory=set)
    attachment: Optional[Attachment] = None

    generated_response: str = ""
    generated_category: str = ""
    prompt: Optional[str] = None
    edited_response: str = ""
    edited_category: str = ""
    score: Optional[int] = None

    state: FormState = FormState.IDLE
    error: str = ""
    save_status: str = ""
    response_id: str = ""
    seq: int = 0

    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    # ------------------------------------------------------------------
    # intake fields
    # ------------------------------------------------------------------
    @property
    def has_draft(self) -> bool:
        return self.state in DRAFT_STATES

    @property
    def can_submit(self) -> bool:
        return self.state is not FormState.SUBMITTING and bool(self.complaint_text.strip())

    def update_fields(
        self,
        complaint: Optional[str] = None,
        findings: Optional[str] = None,
        tones: Optional[Iterable[str]] = None,
        attachment: Optional[Attachment] = None,
    ) -> None:
        if self.state is FormState.SUBMITTING:
            raise SubmitInProgressError("complaint is being processed")
        if self.state is FormState.SAVING:
            raise SaveInProgressError("response is being saved")
        tone_set = normalize_tones(tones) if tones is not None else None
        if complaint is not None:
            self.complaint_text = complaint
        if findings is not None:
            self.findings_text = findings
        if tone_set is not None:
            self.tone_selections = tone_set
        if attachment is not None:
            self.attachment = attachment

    def toggle_tone(self, tone: str) -> None:
        tone_set = normalize_tones([tone])
        self.tone_selections ^= tone_set

    # ------------------------------------------------------------------
    # generation
    # ------------------------------------------------------------------
    def begin_submit(self) -> SubmissionTicket:
        if self.state is FormState.SUBMITTING:
            raise SubmitInProgressError("complaint is already being processed")
        if self.state is FormState.SAVING:
            raise SaveInProgressError("response is being saved")
        if not self.complaint_text.strip():
            raise EmptyComplaintError("complaint text is required")
        self._clear_draft()
        self.error = ""
        self.seq += 1
        self.state = FormState.SUBMITTING
        return SubmissionTicket(
            seq=self.seq,
            request=GenerationRequest(
                complaint=self.complaint_text,
                findings=self.findings_text,
                response_tones=sorted(self.tone_selections),
            ),
        )

    def is_current(self, ticket: SubmissionTicket) -> bool:
        return ticket.seq == self.seq and self.state is FormState.SUBMITTING

    def apply_generation(self, ticket: SubmissionTicket, result: GenerationResult) -> bool:
        if not self.is_current(ticket):
            return False
        self.generated_response = result.response
        self.generated_category = result.category
        self.prompt = result.prompt
        self.edited_response = result.response
        self.edited_category = result.category
        self.score = None
        self.state = FormState.DRAFTED
        return True

    def fail_submission(self, ticket: SubmissionTicket) -> bool:
        if not self.is_current(ticket):
            return False
        self.error = SUBMIT_FAILED_MESSAGE
        self.state = FormState.SUBMIT_FAILED
        return True

    # ------------------------------------------------------------------
    # review
    # ------------------------------------------------------------------
    def edit(
        self,
        response: Optional[str] = None,
        category: Optional[str] = None,
        score=...,
    ) -> None:
        """Apply reviewer edits; ``score=None`` clears it, omitted keeps it."""
        self._require_draft()
        if self.state is FormState.SAVING:
            raise SaveInProgressError("response is being saved")
        if category is not None and category not in CATEGORIES:
            raise FormValidationError(f"unknown category: {category!r}")
        new_score = self.score if score is ... else parse_score(score)
        changed = (
            (response is not None and response != self.edited_response)
            or (category is not None and category != self.edited_category)
            or new_score != self.score
        )
        if response is not None:
            self.edited_response = response
        if category is not None:
            self.edited_category = category
        self.score = new_score
        if changed and self.state in (FormState.SAVED, FormState.SAVE_FAILED):
            self.state = FormState.DRAFTED
            self.save_status = ""
            self.response_id = ""

    def begin_save(self) -> SaveRequest:
        self._require_draft()
        if self.state is FormState.SAVING:
            raise SaveInProgressError("response is already being saved")
        fields = {
            "complaint": self.complaint_text,
            "originalResponse": self.generated_response,
            "editedResponse": self.edited_response,
            "originalCategory": self.generated_category,
            "editedCategory": self.edited_category,
        }
        if self.score is not None:
            fields["responseScore"] = str(self.score)
        if self.prompt:
            fields["responsePrompt"] = self.prompt
        self.state = FormState.SAVING
        self.save_status = SAVING_MESSAGE
        self.response_id = ""
        return SaveRequest(fields=fields, attachment=self.attachment)

    def complete_save(self, result: SaveResult) -> None:
        if self.state is not FormState.SAVING:
            raise FormStateError(f"no save in progress (state={self.state.value})")
        self.save_status = result.status
        self.response_id = result.response_id
        self.attachment = None
        self.state = FormState.SAVED

    def fail_save(self) -> None:
        if self.state is not FormState.SAVING:
            raise FormStateError(f"no save in progress (state={self.state.value})")
        self.save_status = SAVE_FAILED_MESSAGE
        self.response_id = ""
        self.state = FormState.SAVE_FAILED

    def reset(self) -> None:
        if self.state not in RESETTABLE_STATES:
            raise NoDraftError(f"nothing to reset (state={self.state.value})")
        self.edited_response = self.generated_response
        self.edited_category = self.generated_category
        self.save_status = ""
        self.response_id = ""
        self.state = FormState.DRAFTED

    # ------------------------------------------------------------------
    def _require_draft(self) -> None:
        if not self.has_draft:
            raise NoDraftError(f"no draft response (state={self.state.value})")

    def _clear_draft(self) -> None:
        self.generated_response = ""
        self.generated_category = ""
        self.prompt = None
        self.edited_response = ""
        self.edited_category = ""
        self.score = None
        self.save_status = ""
        self.response_id = ""


__all__ = [
    "Attachment",
    "ComplaintForm",
    "EmptyComplaintError",
    "FormState",
    "FormStateError",
    "FormValidationError",
    "NoDraftError",
    "SAVE_FAILED_MESSAGE",
    "SAVING_MESSAGE",
    "SUBMIT_FAILED_MESSAGE",
    "SaveInProgressError",
    "SaveRequest",
    "SubmissionTicket",
    "SubmitInProgressError",
    "normalize_tones",
    "parse_score",
]
