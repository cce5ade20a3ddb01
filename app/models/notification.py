"""Domain events raised by onboarding transitions and their stored notifications."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, Enum):
    """Closed set of onboarding transitions that raise a notification."""

    PROFILE_CREATED = "profile_created"
    KYC_VERIFIED = "kyc_verified"
    FINANCIALS_LINKED = "financials_linked"
    DOCUMENT_ADDED = "document_added"


class DomainEvent(BaseModel):
    """Notification intent produced by the onboarding coordinator."""

    kind: EventKind
    owner_email: str
    message: str
    created_at: datetime = Field(default_factory=_utcnow)


class Notification(BaseModel):
    """Stored notification; unread until explicitly acknowledged."""

    id: UUID
    owner_email: str
    kind: EventKind
    message: str
    created_at: datetime
    read_at: datetime | None = None

    @computed_field  # type: ignore[misc]
    @property
    def read(self) -> bool:
        return self.read_at is not None
