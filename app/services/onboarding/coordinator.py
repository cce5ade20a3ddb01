"""Onboarding coordinator: legal write transitions for a company profile.

Profile existence is the only ordering constraint. KYC verification, financials
linking and document uploads are independent, monotonic steps that may happen
in any order once a profile exists. Every successful transition yields the
domain events it raised; events are handed to the notifier best-effort, so a
failing notification store never turns a committed transition into an error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.models.company import (
    OWNER_EMAIL_MAX_LENGTH,
    CompanyProfile,
    Document,
    DocumentMeta,
    MediaType,
    ProfileFields,
    ProfileFlag,
)
from app.models.notification import DomainEvent, EventKind
from app.observability.metrics import metrics
from app.services.notifications.service import get_notification_service
from app.services.onboarding.errors import NotFoundError, PersistenceError, ValidationError
from app.services.onboarding.repositories import ProfileRepository, build_profile_repository

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = ("name", "sector", "target_raise", "revenue")

FLAG_EVENTS: dict[ProfileFlag, tuple[EventKind, str]] = {
    ProfileFlag.KYC_VERIFIED: (EventKind.KYC_VERIFIED, "KYC verification completed successfully"),
    ProfileFlag.FINANCIALS_LINKED: (EventKind.FINANCIALS_LINKED, "Financial data linked successfully"),
}


class EventPublisher(Protocol):
    """Notification collaborator contract."""

    def publish(self, event: DomainEvent) -> Any:
        ...


@dataclass(frozen=True)
class OnboardingResult:
    """Updated aggregate plus the events raised by the transition."""

    profile: CompanyProfile
    events: tuple[DomainEvent, ...] = ()
    document: Document | None = None


class OnboardingCoordinator:
    """Validates onboarding writes, persists them, and raises domain events."""

    def __init__(
        self,
        *,
        repository: ProfileRepository | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._profiles = repository or build_profile_repository()
        self._publisher = publisher or get_notification_service()

    def create_or_update_profile(
        self,
        owner_email: str,
        fields: ProfileFields | Mapping[str, Any],
    ) -> OnboardingResult:
        """Create the owner's profile on first call, otherwise apply a partial update."""
        owner = _require_identity(owner_email)
        patch = _validate_profile_fields(fields)

        existing = self._profiles.find_profile_by_owner(owner)
        if existing is None:
            missing = [name for name in REQUIRED_PROFILE_FIELDS if name not in patch]
            if missing:
                raise ValidationError(f"Missing required company fields: {', '.join(missing)}.")
            try:
                profile = self._profiles.create_profile(owner, patch)
            except PersistenceError as exc:
                if exc.code != "409_PROFILE_CONFLICT":
                    raise
                # Lost a concurrent first-create race; apply ours as an update instead.
                existing = self._profiles.find_profile_by_owner(owner)
                if existing is None:
                    raise
            else:
                event = DomainEvent(
                    kind=EventKind.PROFILE_CREATED,
                    owner_email=owner,
                    message=f'Company profile "{profile.name}" created',
                )
                return self._commit(profile, event)

        profile = self._profiles.update_profile(existing.id, patch) if patch else existing
        logger.info(
            "onboarding.profile.updated",
            extra={"profile_id": str(profile.id), "fields": sorted(patch)},
        )
        return OnboardingResult(profile=profile)

    def verify_identity(self, owner_email: str) -> OnboardingResult:
        """Mark KYC as verified; a repeat call is a no-op without a new event."""
        return self._raise_flag(owner_email, ProfileFlag.KYC_VERIFIED)

    def link_financials(self, owner_email: str, token: str) -> OnboardingResult:
        """Mark financials as linked. The token is opaque and only checked for presence."""
        owner = _require_identity(owner_email)
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("Financials token is required.", code="422_INVALID_TOKEN")
        return self._raise_flag(owner, ProfileFlag.FINANCIALS_LINKED)

    def record_document(
        self,
        owner_email: str,
        meta: DocumentMeta | Mapping[str, Any],
    ) -> OnboardingResult:
        """Append a document to the owner's data room."""
        owner = _require_identity(owner_email)
        document_meta = _validate_document_meta(meta)
        profile = self.get_profile(owner)
        document = self._profiles.append_document(profile.id, document_meta)
        event = DomainEvent(
            kind=EventKind.DOCUMENT_ADDED,
            owner_email=owner,
            message=f'File "{document.name}" uploaded successfully',
        )
        result = self._commit(self.get_profile(owner), event)
        return OnboardingResult(profile=result.profile, events=result.events, document=document)

    def get_profile(self, owner_email: str) -> CompanyProfile:
        owner = _require_identity(owner_email)
        profile = self._profiles.find_profile_by_owner(owner)
        if profile is None:
            raise NotFoundError("Company not found.")
        return profile

    def list_documents(self, owner_email: str) -> list[Document]:
        profile = self.get_profile(owner_email)
        return self._profiles.list_documents(profile.id)

    def _raise_flag(self, owner_email: str, flag: ProfileFlag) -> OnboardingResult:
        profile = self.get_profile(owner_email)
        updated, changed = self._profiles.set_flag(profile.id, flag)
        if not changed:
            logger.info(
                "onboarding.flag.unchanged",
                extra={"profile_id": str(updated.id), "flag": flag.value},
            )
            return OnboardingResult(profile=updated)
        kind, message = FLAG_EVENTS[flag]
        event = DomainEvent(kind=kind, owner_email=updated.owner_email, message=message)
        return self._commit(updated, event)

    def _commit(self, profile: CompanyProfile, event: DomainEvent) -> OnboardingResult:
        tags = {"kind": event.kind.value}
        metrics.increment("transitions", tags=tags)
        logger.info("onboarding.transition", extra={"profile_id": str(profile.id), **tags})
        try:
            self._publisher.publish(event)
        except Exception:
            metrics.increment("notifications.emit_failed", tags=tags)
            logger.exception(
                "notifications.emit_failed",
                extra={"profile_id": str(profile.id), **tags},
            )
        return OnboardingResult(profile=profile, events=(event,))


def _require_identity(owner_email: str) -> str:
    if not isinstance(owner_email, str) or not owner_email.strip():
        raise ValidationError("Owner identity is required.", code="422_INVALID_IDENTITY")
    owner = owner_email.strip().lower()
    if len(owner) > OWNER_EMAIL_MAX_LENGTH:
        raise ValidationError(
            f"Owner identity must be at most {OWNER_EMAIL_MAX_LENGTH} characters.",
            code="422_INVALID_IDENTITY",
        )
    return owner


def _validate_profile_fields(fields: ProfileFields | Mapping[str, Any]) -> dict[str, Any]:
    try:
        if isinstance(fields, ProfileFields):
            validated = ProfileFields.model_validate(fields.model_dump(exclude_unset=True))
        else:
            validated = ProfileFields.model_validate(dict(fields))
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid company data: {problems}") from exc
    return validated.model_dump(exclude_none=True)


def _validate_document_meta(meta: DocumentMeta | Mapping[str, Any]) -> DocumentMeta:
    try:
        document_meta = meta if isinstance(meta, DocumentMeta) else DocumentMeta.model_validate(dict(meta))
    except PydanticValidationError as exc:
        raise ValidationError("Invalid document metadata.", code="422_INVALID_DOCUMENT") from exc
    allowed = {media_type.value for media_type in MediaType}
    if document_meta.media_type not in allowed:
        raise ValidationError(
            "Invalid file type. Only PDF, PPTX, and XLSX files are allowed.",
            code="422_INVALID_DOCUMENT",
        )
    if not document_meta.name.strip():
        raise ValidationError("Document name is required.", code="422_INVALID_DOCUMENT")
    return document_meta


_COORDINATOR_INSTANCE: OnboardingCoordinator | None = None


def get_onboarding_coordinator() -> OnboardingCoordinator:
    """Singleton accessor used by API routes."""
    global _COORDINATOR_INSTANCE  # noqa: PLW0603
    if _COORDINATOR_INSTANCE is None:
        _COORDINATOR_INSTANCE = OnboardingCoordinator()
    return _COORDINATOR_INSTANCE
