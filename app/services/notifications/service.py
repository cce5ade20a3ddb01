"""Notification collaborator: records onboarding events and their read state."""

from __future__ import annotations

import logging
from uuid import UUID

from app.config import settings
from app.models.notification import DomainEvent, EventKind, Notification
from app.observability.metrics import metrics
from app.services.notifications.repositories import (
    NotificationRepository,
    build_notification_repository,
)
from app.services.onboarding.errors import NotFoundError

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores notifications raised by onboarding and tracks acknowledgement."""

    def __init__(
        self,
        *,
        repository: NotificationRepository | None = None,
        list_limit: int | None = None,
    ) -> None:
        self._repository = repository or build_notification_repository()
        self._list_limit = list_limit if list_limit is not None else settings.notifications_limit

    def emit(self, owner_email: str, kind: EventKind, message: str) -> Notification:
        return self.publish(DomainEvent(kind=kind, owner_email=owner_email, message=message))

    def publish(self, event: DomainEvent) -> Notification:
        notification = self._repository.add(event)
        metrics.increment("notifications.emitted", tags={"kind": event.kind.value})
        logger.info(
            "notifications.emitted",
            extra={"notification_id": str(notification.id), "kind": event.kind.value},
        )
        return notification

    def list_notifications(self, owner_email: str) -> list[Notification]:
        """Newest first, capped at the configured limit."""
        return self._repository.list_for_owner(owner_email, limit=self._list_limit)

    def acknowledge(self, owner_email: str, notification_id: UUID) -> None:
        if not self._repository.mark_read(owner_email, notification_id):
            raise NotFoundError(
                f"Notification {notification_id} not found.",
                code="404_NOTIFICATION_NOT_FOUND",
            )

    def acknowledge_all(self, owner_email: str) -> int:
        updated = self._repository.mark_all_read(owner_email)
        logger.info("notifications.acknowledged", extra={"count": updated})
        return updated


_SERVICE_INSTANCE: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Singleton accessor used by API routes and the onboarding coordinator."""
    global _SERVICE_INSTANCE  # noqa: PLW0603
    if _SERVICE_INSTANCE is None:
        _SERVICE_INSTANCE = NotificationService()
    return _SERVICE_INSTANCE
