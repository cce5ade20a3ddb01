"""Deterministic investability scoring for onboarded companies.

The score is recomputed from the current profile on every read and never
stored. Components are summed unrounded and only the total is rounded; the
breakdown rounds the revenue component on its own for display. Both use
round-half-up.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from app.models.company import CompanyProfile, ScoreBreakdown, ScoreView

KYC_POINTS: Final = 30
FINANCIALS_POINTS: Final = 20
DOCUMENTS_POINTS: Final = 25
DOCUMENTS_REQUIRED: Final = 3
REVENUE_POINTS: Final = 25
REVENUE_CEILING: Final = 1_000_000

RECOMMENDATION_BANDS: Final[tuple[tuple[int, str], ...]] = (
    (80, "Excellent! Your company is highly investable."),
    (60, "Good progress! Focus on the remaining areas to improve your score."),
    (40, "Getting there! Complete more requirements to boost your investability."),
)
EARLY_STAGE_RECOMMENDATION: Final = (
    "Early stage. Complete the onboarding steps to improve your score."
)

Component = Callable[[CompanyProfile], tuple[str, float]]


def compute_score(profile: CompanyProfile) -> ScoreView:
    """Map a profile to its score, reasons, recommendation and breakdown."""
    components: tuple[Component, ...] = (
        _kyc_component,
        _financials_component,
        _documents_component,
        _revenue_component,
    )
    reasons: list[str] = []
    points: list[float] = []
    for component in components:
        reason, value = component(profile)
        reasons.append(reason)
        points.append(value)

    kyc, financials, documents, revenue = points
    total = sum(points)
    return ScoreView(
        score=_clamp(round_half_up(total), 0, 100),
        reasons=reasons,
        recommendation=recommendation_for(total),
        breakdown=ScoreBreakdown(
            kyc=int(kyc),
            financials=int(financials),
            documents=int(documents),
            revenue=round_half_up(revenue),
        ),
    )


def recommendation_for(total: float) -> str:
    """Bands include their lower bound and are checked on the unrounded total."""
    for threshold, recommendation in RECOMMENDATION_BANDS:
        if total >= threshold:
            return recommendation
    return EARLY_STAGE_RECOMMENDATION


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _kyc_component(profile: CompanyProfile) -> tuple[str, float]:
    if profile.kyc_verified:
        return "KYC verification completed", KYC_POINTS
    return f"Complete KYC verification to gain {KYC_POINTS} points", 0


def _financials_component(profile: CompanyProfile) -> tuple[str, float]:
    if profile.financials_linked:
        return "Financial data linked", FINANCIALS_POINTS
    return f"Link financial data to gain {FINANCIALS_POINTS} points", 0


def _documents_component(profile: CompanyProfile) -> tuple[str, float]:
    count = len(profile.documents)
    if count >= DOCUMENTS_REQUIRED:
        return f"Documentation complete ({count} files)", DOCUMENTS_POINTS
    return (
        f"Upload more documents to gain {DOCUMENTS_POINTS} points "
        f"(currently {count}/{DOCUMENTS_REQUIRED})",
        0,
    )


def _revenue_component(profile: CompanyProfile) -> tuple[str, float]:
    points = min(REVENUE_POINTS, (profile.revenue / REVENUE_CEILING) * REVENUE_POINTS)
    if points > 0:
        display = Decimal(points).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"Revenue contribution: {display} points", points
    return f"Increase revenue to gain up to {REVENUE_POINTS} points", 0


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))
