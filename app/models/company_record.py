"""SQLModel mappings for persisted company profiles and their documents."""
# ruff: noqa: UP017

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import BigInteger, Boolean, Column, DateTime, Float, String, Uuid
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import expression
from sqlmodel import Field, SQLModel

from app.models.company import (
    DOCUMENT_NAME_MAX_LENGTH,
    MEDIA_TYPE_MAX_LENGTH,
    OWNER_EMAIL_MAX_LENGTH,
    PROFILE_TEXT_MAX_LENGTH,
    STORAGE_LOCATOR_MAX_LENGTH,
    CompanyProfile,
    Document,
    MediaType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on round-trip; pin naive values back to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UtcNow(expression.FunctionElement):
    """Dialect-aware server default that pins timestamps to UTC."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(UtcNow)
def _utc_now_default(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "CURRENT_TIMESTAMP"


@compiles(UtcNow, "postgresql")
def _utc_now_default_postgres(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "timezone('utc', now())"


class CompanyRecord(SQLModel, table=True):
    """ORM model for a company profile; one row per owner."""

    __tablename__ = "companies"
    __table_args__ = (sa.UniqueConstraint("owner_email", name="uq_companies_owner_email"),)

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    owner_email: str = Field(sa_column=Column(String(length=OWNER_EMAIL_MAX_LENGTH), nullable=False))
    name: str = Field(sa_column=Column(String(length=PROFILE_TEXT_MAX_LENGTH), nullable=False))
    sector: str = Field(sa_column=Column(String(length=PROFILE_TEXT_MAX_LENGTH), nullable=False))
    target_raise: float = Field(sa_column=Column(Float, nullable=False))
    revenue: float = Field(sa_column=Column(Float, nullable=False))
    kyc_verified: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, server_default=sa.false())
    )
    financials_linked: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, server_default=sa.false())
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=UtcNow(),
            onupdate=UtcNow(),
        ),
    )

    def to_company_profile(self, documents: Sequence[DocumentRecord] = ()) -> CompanyProfile:
        """Hydrate the aggregate together with its ordered documents."""
        return CompanyProfile(
            id=self.id,
            owner_email=self.owner_email,
            name=self.name,
            sector=self.sector,
            target_raise=self.target_raise,
            revenue=self.revenue,
            kyc_verified=self.kyc_verified,
            financials_linked=self.financials_linked,
            documents=[record.to_document() for record in documents],
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )


class DocumentRecord(SQLModel, table=True):
    """ORM model for document metadata; rows are only ever inserted."""

    __tablename__ = "documents"
    __table_args__ = (sa.Index("ix_documents_company_created", "company_id", "created_at"),)

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    company_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    name: str = Field(sa_column=Column(String(length=DOCUMENT_NAME_MAX_LENGTH), nullable=False))
    media_type: str = Field(sa_column=Column(String(length=MEDIA_TYPE_MAX_LENGTH), nullable=False))
    size: int = Field(sa_column=Column(BigInteger, nullable=False))
    storage_locator: str | None = Field(
        default=None, sa_column=Column(String(length=STORAGE_LOCATOR_MAX_LENGTH), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )

    def to_document(self) -> Document:
        return Document(
            id=self.id,
            company_id=self.company_id,
            name=self.name,
            media_type=MediaType(self.media_type),
            size=self.size,
            storage_locator=self.storage_locator,
            created_at=as_utc(self.created_at),
        )
