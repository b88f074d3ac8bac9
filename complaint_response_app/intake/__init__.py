from .form import (
    Attachment,
    ComplaintForm,
    EmptyComplaintError,
    FormState,
    FormStateError,
    FormValidationError,
    NoDraftError,
    SaveInProgressError,
    SubmitInProgressError,
)
from .service import DraftStore, IntakeService

__all__ = [
    "Attachment",
    "ComplaintForm",
    "DraftStore",
    "EmptyComplaintError",
    "FormState",
    "FormStateError",
    "FormValidationError",
    "IntakeService",
    "NoDraftError",
    "SaveInProgressError",
    "SubmitInProgressError",
]
