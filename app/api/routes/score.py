"""Investability score endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_owner_email
from app.api.errors import to_http_exception
from app.models.company import ScoreView
from app.observability.metrics import metrics
from app.services.onboarding.coordinator import OnboardingCoordinator, get_onboarding_coordinator
from app.services.onboarding.errors import OnboardingError
from app.services.scoring.engine import compute_score

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/score", response_model=ScoreView)
def get_score(
    owner_email: str = Depends(get_owner_email),
    coordinator: OnboardingCoordinator = Depends(get_onboarding_coordinator),
) -> ScoreView:
    """Recompute the score from the caller's current profile."""
    try:
        profile = coordinator.get_profile(owner_email)
    except OnboardingError as exc:
        raise to_http_exception(exc) from exc

    with metrics.timed("scoring.latency_ms"):
        view = compute_score(profile)
    logger.info(
        "scoring.computed",
        extra={"profile_id": str(profile.id), "score": view.score},
    )
    return view
