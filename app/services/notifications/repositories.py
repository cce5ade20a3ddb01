"""Persistence backends for onboarding notifications."""
# ruff: noqa: UP017

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Protocol
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from app.core import database
from app.models.notification import DomainEvent, Notification
from app.models.notification_record import NotificationRecord
from app.services.onboarding.errors import PersistenceError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRepository(Protocol):
    """Persistence contract for notifications."""

    def add(self, event: DomainEvent) -> Notification:
        ...

    def list_for_owner(self, owner_email: str, *, limit: int | None = None) -> list[Notification]:
        ...

    def mark_read(self, owner_email: str, notification_id: UUID) -> bool:
        ...

    def mark_all_read(self, owner_email: str) -> int:
        ...


class InMemoryNotificationRepository(NotificationRepository):
    """Thread-safe repository used for API/local development."""

    def __init__(self) -> None:
        self._notifications: list[Notification] = []
        self._lock = Lock()

    def add(self, event: DomainEvent) -> Notification:
        notification = Notification(
            id=uuid4(),
            owner_email=event.owner_email,
            kind=event.kind,
            message=event.message,
            created_at=event.created_at,
        )
        with self._lock:
            self._notifications.append(notification)
        return notification.model_copy()

    def list_for_owner(self, owner_email: str, *, limit: int | None = None) -> list[Notification]:
        with self._lock:
            matches = [
                notification.model_copy()
                for notification in reversed(self._notifications)
                if notification.owner_email == owner_email
            ]
        if limit is not None:
            return matches[: max(0, limit)]
        return matches

    def mark_read(self, owner_email: str, notification_id: UUID) -> bool:
        with self._lock:
            for index, notification in enumerate(self._notifications):
                if notification.id == notification_id and notification.owner_email == owner_email:
                    self._notifications[index] = notification.model_copy(update={"read_at": _utcnow()})
                    return True
        return False

    def mark_all_read(self, owner_email: str) -> int:
        now = _utcnow()
        updated = 0
        with self._lock:
            for index, notification in enumerate(self._notifications):
                if notification.owner_email == owner_email and notification.read_at is None:
                    self._notifications[index] = notification.model_copy(update={"read_at": now})
                    updated += 1
        return updated


class SQLNotificationRepository(NotificationRepository):
    """SQLModel-backed notification store."""

    def __init__(self, engine: Engine, *, auto_create_schema: bool = False) -> None:
        self._engine = engine
        if auto_create_schema:
            SQLModel.metadata.create_all(self._engine)

    def add(self, event: DomainEvent) -> Notification:
        record = NotificationRecord.from_event(event)
        try:
            with self._session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                return record.to_notification()
        except SQLAlchemyError as exc:
            logger.exception(
                "notifications.persistence.error",
                extra={"operation": "add", "kind": event.kind.value},
            )
            raise PersistenceError("Failed to store notification.") from exc

    def list_for_owner(self, owner_email: str, *, limit: int | None = None) -> list[Notification]:
        try:
            with self._session() as session:
                statement = (
                    select(NotificationRecord)
                    .where(NotificationRecord.owner_email == owner_email)
                    .order_by(NotificationRecord.created_at.desc())
                )
                if limit is not None and limit >= 0:
                    statement = statement.limit(limit)
                return [record.to_notification() for record in session.exec(statement).all()]
        except SQLAlchemyError as exc:  # pragma: no cover - defensive guard
            logger.exception("notifications.persistence.error", extra={"operation": "list"})
            raise PersistenceError("Failed to list notifications.") from exc

    def mark_read(self, owner_email: str, notification_id: UUID) -> bool:
        statement = (
            sa.update(NotificationRecord)
            .where(
                NotificationRecord.id == notification_id,
                NotificationRecord.owner_email == owner_email,
            )
            .values(read_at=_utcnow())
        )
        return self._execute(statement, operation="mark_read") > 0

    def mark_all_read(self, owner_email: str) -> int:
        statement = (
            sa.update(NotificationRecord)
            .where(
                NotificationRecord.owner_email == owner_email,
                NotificationRecord.read_at.is_(None),
            )
            .values(read_at=_utcnow())
        )
        return self._execute(statement, operation="mark_all_read")

    def _execute(self, statement: sa.Update, *, operation: str) -> int:
        try:
            with self._session() as session:
                result = session.execute(statement)
                session.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            logger.exception("notifications.persistence.error", extra={"operation": operation})
            raise PersistenceError("Failed to update notifications.") from exc

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self._engine) as session:
            yield session


def build_notification_repository(engine: Engine | None = None) -> NotificationRepository:
    """Instantiate a NotificationRepository using DATABASE_URL when available."""
    resolved_engine = engine or database.init_database()
    if resolved_engine is None:
        logger.info("notifications.repository.initialized", extra={"backend": "memory"})
        return InMemoryNotificationRepository()
    logger.info("notifications.repository.initialized", extra={"backend": "database"})
    return SQLNotificationRepository(resolved_engine)
