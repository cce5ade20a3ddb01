from __future__ import annotations

import logging

from fastapi import Header, HTTPException, status

from app.config import settings

logger = logging.getLogger(__name__)


async def get_owner_email(
    x_user_email: str | None = Header(default=None, alias="x-user-email"),
) -> str:
    """Resolve the asserted caller identity; the configured default applies only here."""
    identity = (x_user_email or "").strip() or settings.default_owner_email
    if not identity:
        logger.warning("api.identity.missing")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="x-user-email header is required.",
        )
    return identity.strip().lower()
