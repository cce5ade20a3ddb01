"""SQLModel mapping for stored onboarding notifications."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Column, DateTime, String, Uuid
from sqlmodel import Field, SQLModel

from app.models.company import OWNER_EMAIL_MAX_LENGTH
from app.models.company_record import UtcNow, as_utc
from app.models.notification import DomainEvent, EventKind, Notification


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRecord(SQLModel, table=True):
    """ORM model for a notification row; read_at is NULL while unread."""

    __tablename__ = "notifications"
    __table_args__ = (sa.Index("ix_notifications_owner_created", "owner_email", "created_at"),)

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    owner_email: str = Field(sa_column=Column(String(length=OWNER_EMAIL_MAX_LENGTH), nullable=False))
    kind: str = Field(sa_column=Column(String(length=64), nullable=False))
    message: str = Field(sa_column=Column(String(length=1024), nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )
    read_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    @classmethod
    def from_event(cls, event: DomainEvent) -> NotificationRecord:
        return cls(
            owner_email=event.owner_email,
            kind=event.kind.value,
            message=event.message,
            created_at=event.created_at,
        )

    def to_notification(self) -> Notification:
        return Notification(
            id=self.id,
            owner_email=self.owner_email,
            kind=EventKind(self.kind),
            message=self.message,
            created_at=as_utc(self.created_at),
            read_at=as_utc(self.read_at) if self.read_at else None,
        )
