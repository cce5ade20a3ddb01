"""KYC verification and financials linking endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from app.api.deps import get_owner_email
from app.api.errors import to_http_exception
from app.models.company import CompanyProfile
from app.services.onboarding.coordinator import OnboardingCoordinator, get_onboarding_coordinator
from app.services.onboarding.errors import OnboardingError

router = APIRouter()
logger = logging.getLogger(__name__)


class KycVerifyRequest(BaseModel):
    email: EmailStr


class KycVerifyResponse(BaseModel):
    verified: bool
    company: CompanyProfile


class LinkFinancialsRequest(BaseModel):
    token: str = Field(..., description="Opaque bank-link token; only presence is checked.")


class LinkFinancialsResponse(BaseModel):
    financials_linked: bool
    company: CompanyProfile


@router.post("/kyc/verify", response_model=KycVerifyResponse)
def verify_kyc(
    payload: KycVerifyRequest,
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> KycVerifyResponse:
    """Verify identity for the owner named in the request body."""
    try:
        result = coordinator.verify_identity(str(payload.email))
    except OnboardingError as exc:
        logger.error("onboarding.api_error", extra={"route": "kyc", "code": exc.code})
        raise to_http_exception(exc) from exc
    return KycVerifyResponse(verified=result.profile.kyc_verified, company=result.profile)


@router.post("/financials/link", response_model=LinkFinancialsResponse)
def link_financials(
    payload: LinkFinancialsRequest,
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> LinkFinancialsResponse:
    try:
        result = coordinator.link_financials(owner_email, payload.token)
    except OnboardingError as exc:
        logger.error("onboarding.api_error", extra={"route": "financials", "code": exc.code})
        raise to_http_exception(exc) from exc
    return LinkFinancialsResponse(
        financials_linked=result.profile.financials_linked,
        company=result.profile,
    )
