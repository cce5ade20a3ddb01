"""Data-room document endpoints. Bytes live elsewhere; only metadata is recorded."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_owner_email
from app.api.errors import to_http_exception
from app.models.company import Document, DocumentMeta
from app.services.onboarding.coordinator import OnboardingCoordinator, get_onboarding_coordinator
from app.services.onboarding.errors import OnboardingError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/files", response_model=Document, status_code=status.HTTP_201_CREATED)
def record_file(
    payload: DocumentMeta,
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> Document:
    try:
        result = coordinator.record_document(owner_email, payload)
    except OnboardingError as exc:
        logger.error("onboarding.api_error", extra={"route": "files", "code": exc.code})
        raise to_http_exception(exc) from exc
    return result.document


@router.get("/files", response_model=list[Document])
def list_files(
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> list[Document]:
    try:
        return coordinator.list_documents(owner_email)
    except OnboardingError as exc:
        raise to_http_exception(exc) from exc
