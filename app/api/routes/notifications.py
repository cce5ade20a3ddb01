"""Notification listing and acknowledgement endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_owner_email
from app.api.errors import to_http_exception
from app.models.notification import Notification
from app.services.notifications.service import NotificationService, get_notification_service
from app.services.onboarding.errors import OnboardingError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/notifications", response_model=list[Notification])
def list_notifications(
    owner_email: str = Depends(get_owner_email),
    service: NotificationService = Depends(get_notification_service),
) -> list[Notification]:
    try:
        return service.list_notifications(owner_email)
    except OnboardingError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/notifications/read-all", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_notifications_read(
    owner_email: str = Depends(get_owner_email),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    try:
        service.acknowledge_all(owner_email)
    except OnboardingError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: UUID,
    owner_email: str = Depends(get_owner_email),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    try:
        service.acknowledge(owner_email, notification_id)
    except OnboardingError as exc:
        logger.info("notifications.api_error", extra={"code": exc.code})
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
