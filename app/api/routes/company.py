"""Company profile endpoints (onboarding step 1)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_owner_email
from app.api.errors import to_http_exception
from app.models.company import CompanyProfile, ProfileFields
from app.services.onboarding.coordinator import OnboardingCoordinator, get_onboarding_coordinator
from app.services.onboarding.errors import OnboardingError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/company", response_model=CompanyProfile, status_code=status.HTTP_201_CREATED)
def upsert_company(
    payload: ProfileFields,
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> CompanyProfile:
    """Create the caller's company profile or update the provided fields."""
    try:
        result = coordinator.create_or_update_profile(owner_email, payload)
    except OnboardingError as exc:
        logger.error("onboarding.api_error", extra={"route": "company", "code": exc.code})
        raise to_http_exception(exc) from exc
    return result.profile


@router.get("/company", response_model=CompanyProfile)
def get_company(
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> CompanyProfile:
    try:
        return coordinator.get_profile(owner_email)
    except OnboardingError as exc:
        raise to_http_exception(exc) from exc
