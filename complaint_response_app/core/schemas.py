# complaint_response_app/core/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Fixed enumerations shared by the forms and the external API
# ============================================================================
CATEGORIES: Tuple[str, ...] = ("Credit Cards", "Channels", "Staff", "Banking & Savings")
TONES: Tuple[str, ...] = ("polite", "formal", "creative", "concise", "empathetic")
SCORES: Tuple[int, ...] = (1, 2, 3, 4, 5)
ATTACHMENT_EXTENSIONS: Tuple[str, ...] = (".pdf", ".docx", ".xlsx")

SUBMIT_ROLES: FrozenSet[str] = frozenset({"complaintsysadmin"})
LISTING_ROLES: FrozenSet[str] = frozenset({"complaintsysadmin", "complaintsysuser"})


__all__ = [
    "CATEGORIES",
    "TONES",
    "SCORES",
    "ATTACHMENT_EXTENSIONS",
    "SUBMIT_ROLES",
    "LISTING_ROLES",
    "AppBaseModel",
    "User",
    "Claim",
    "ClientPrincipal",
    "GenerationRequest",
    "GenerationResult",
    "SaveResult",
    "SavedResponseRecord",
    "SavedResponsesPayload",
]


class AppBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# Identity
# ============================================================================
class User(AppBaseModel):
    """Signed-in staff member, derived once per request from identity claims."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    email: str
    roles: FrozenSet[str] = Field(default_factory=frozenset)
    permissions: str = ""

    def has_any_role(self, allowed: FrozenSet[str] | set[str]) -> bool:
        return bool(self.roles & frozenset(allowed))


class Claim(AppBaseModel):
    typ: str
    val: str = ""


class ClientPrincipal(AppBaseModel):
    user_details: str = Field("", validation_alias=AliasChoices("userDetails", "user_details"))
    user_id: str = Field("", validation_alias=AliasChoices("userId", "user_id"))
    user_roles: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("userRoles", "user_roles")
    )
    claims: List[Claim] = Field(default_factory=list)

    @field_validator("user_roles", "claims", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []

    def claim_values(self, claim_type: str) -> List[str]:
        return [c.val for c in self.claims if c.typ == claim_type]


# ============================================================================
# Complaints API payloads
# ============================================================================
class GenerationRequest(AppBaseModel):
    """JSON body for ``POST /api/processComplaint``."""

    complaint: str
    findings: str = ""
    response_tones: List[str] = Field(default_factory=list, serialization_alias="responseTones")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class GenerationResult(AppBaseModel):
    response: str
    category: str
    prompt: Optional[str] = None

    @field_validator("prompt", mode="before")
    @classmethod
    def _blank_prompt(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SaveResult(AppBaseModel):
    status: str
    response_id: str = Field("", validation_alias=AliasChoices("responseId", "response_id"))

    @field_validator("response_id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return "" if v is None else str(v)


class SavedResponseRecord(AppBaseModel):
    """Read-only record owned by the persistence service."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int | str = Field(validation_alias=AliasChoices("Id", "id"))
    response_id: str = Field(validation_alias=AliasChoices("ResponseId", "responseId", "response_id"))
    complaint: str = Field("", validation_alias=AliasChoices("Complaint", "complaint", "complaintText"))
    original_response: str = Field(
        "", validation_alias=AliasChoices("OriginalResponse", "originalResponse", "originalResponseText")
    )
    edited_response: str = Field(
        "", validation_alias=AliasChoices("EditedResponse", "editedResponse", "editedResponseText")
    )
    original_category: str = Field(
        "", validation_alias=AliasChoices("OriginalCategory", "originalCategory")
    )
    edited_category: str = Field("", validation_alias=AliasChoices("EditedCategory", "editedCategory"))
    document_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("DocumentUrl", "documentUrl", "document_url")
    )
    saved_at: str = Field("", validation_alias=AliasChoices("SavedAt", "savedAt", "saved_at"))

    @field_validator("document_url", mode="before")
    @classmethod
    def _blank_url(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("saved_at", mode="before")
    @classmethod
    def _ts_to_str(cls, v):
        if isinstance(v, datetime):
            return v.isoformat()
        return "" if v is None else str(v)

    @field_validator("response_id", mode="before")
    @classmethod
    def _rid_to_str(cls, v):
        return "" if v is None else str(v)


class SavedResponsesPayload(AppBaseModel):
    responses: List[SavedResponseRecord] = Field(default_factory=list)

    @field_validator("responses", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []
