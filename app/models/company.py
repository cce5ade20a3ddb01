"""Domain models for company onboarding and investability scoring."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    confloat,
    conint,
    field_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Storage column limits; inputs are rejected before they reach the database.
OWNER_EMAIL_MAX_LENGTH = 320
PROFILE_TEXT_MAX_LENGTH = 255
DOCUMENT_NAME_MAX_LENGTH = 512
MEDIA_TYPE_MAX_LENGTH = 255
STORAGE_LOCATOR_MAX_LENGTH = 1024
DOCUMENT_SIZE_MAX = 2**63 - 1


class MediaType(str, Enum):
    """Document formats accepted into a company's data room."""

    PDF = "application/pdf"
    SPREADSHEET = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    PRESENTATION = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


class ProfileFlag(str, Enum):
    """Monotonic onboarding flags stored on the company profile."""

    KYC_VERIFIED = "kyc_verified"
    FINANCIALS_LINKED = "financials_linked"


class ProfileFields(BaseModel):
    """Writable company fields; anything left unset is not touched on update."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str | None = Field(default=None, max_length=PROFILE_TEXT_MAX_LENGTH)
    sector: str | None = Field(default=None, max_length=PROFILE_TEXT_MAX_LENGTH)
    target_raise: confloat(ge=0, allow_inf_nan=False) | None = Field(  # type: ignore[valid-type]
        default=None,
        validation_alias=AliasChoices("target_raise", "targetRaise"),
    )
    revenue: confloat(ge=0, allow_inf_nan=False) | None = None  # type: ignore[valid-type]

    @field_validator("name", "sector")
    @classmethod
    def _require_text(cls, value: str | None) -> str | None:
        if value is None:
            return value
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be empty")
        return stripped


class DocumentMeta(BaseModel):
    """Declared metadata for a document entering the data room."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=DOCUMENT_NAME_MAX_LENGTH)
    media_type: str = Field(max_length=MEDIA_TYPE_MAX_LENGTH)
    size: conint(ge=0, le=DOCUMENT_SIZE_MAX) = 0  # type: ignore[valid-type]
    storage_locator: str | None = Field(default=None, max_length=STORAGE_LOCATOR_MAX_LENGTH)


class Document(BaseModel):
    """Append-only document record counted toward the scoring threshold."""

    id: UUID
    company_id: UUID
    name: str
    media_type: MediaType
    size: conint(ge=0, le=DOCUMENT_SIZE_MAX)  # type: ignore[valid-type]
    storage_locator: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class CompanyProfile(BaseModel):
    """Aggregate root for a single owner's onboarding state."""

    id: UUID
    owner_email: str
    name: str
    sector: str
    target_raise: confloat(ge=0, allow_inf_nan=False)  # type: ignore[valid-type]
    revenue: confloat(ge=0, allow_inf_nan=False)  # type: ignore[valid-type]
    kyc_verified: bool = False
    financials_linked: bool = False
    documents: list[Document] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None

    @computed_field  # type: ignore[misc]
    @property
    def document_count(self) -> int:
        return len(self.documents)


class ScoreBreakdown(BaseModel):
    """Per-category points as displayed to the company."""

    kyc: int
    financials: int
    documents: int
    revenue: int


class ScoreView(BaseModel):
    """Read-only investability score derived from the current profile."""

    score: conint(ge=0, le=100)  # type: ignore[valid-type]
    reasons: list[str]
    recommendation: str
    breakdown: ScoreBreakdown
