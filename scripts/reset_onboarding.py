"""Clear onboarding tables and optionally seed a demo company for smoke tests."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy import delete
from sqlalchemy.engine.url import make_url
from sqlmodel import Session, SQLModel

from app.config import Settings
from app.core.database import create_sync_engine
from app.models.company_record import CompanyRecord, DocumentRecord
from app.models.notification_record import NotificationRecord
from app.services.notifications.repositories import SQLNotificationRepository
from app.services.notifications.service import NotificationService
from app.services.onboarding.coordinator import OnboardingCoordinator
from app.services.onboarding.repositories import SQLProfileRepository
from app.services.scoring.engine import compute_score

logger = logging.getLogger("scripts.reset_onboarding")

DEMO_COMPANY = {
    "name": "Demo Startup Inc.",
    "sector": "Technology",
    "target_raise": 5_000_000,
    "revenue": 250_000,
}


def _render_database_url(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "<invalid DATABASE_URL>"


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reset onboarding data.")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL (falls back to .env).",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before clearing (local SQLite setups).",
    )
    parser.add_argument(
        "--seed-demo",
        action="store_true",
        help="Create a demo company profile after clearing.",
    )
    parser.add_argument(
        "--owner-email",
        type=str,
        default="demo@example.com",
        help="Owner identity used for the demo company.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    local_settings = Settings()
    database_url = args.database_url or local_settings.database_url
    if not database_url:
        raise RuntimeError("DATABASE_URL is required to reset onboarding data.")
    logger.info("Using DATABASE_URL=%s", _render_database_url(database_url))

    engine = create_sync_engine(database_url)
    try:
        if args.create_schema:
            SQLModel.metadata.create_all(engine)
        with Session(engine) as session:
            # Children first so the statements also work without ON DELETE CASCADE.
            for model in (DocumentRecord, NotificationRecord, CompanyRecord):
                result = session.execute(delete(model))
                logger.info(
                    "reset_onboarding.cleared",
                    extra={"table": model.__tablename__, "rows": result.rowcount},
                )
            session.commit()

        if args.seed_demo:
            coordinator = OnboardingCoordinator(
                repository=SQLProfileRepository(engine),
                publisher=NotificationService(repository=SQLNotificationRepository(engine)),
            )
            result = coordinator.create_or_update_profile(args.owner_email, DEMO_COMPANY)
            view = compute_score(result.profile)
            logger.info(
                "reset_onboarding.seeded",
                extra={
                    "profile_id": str(result.profile.id),
                    "owner_email": result.profile.owner_email,
                    "score": view.score,
                },
            )
    finally:
        engine.dispose()
    logger.info("reset_onboarding.complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
