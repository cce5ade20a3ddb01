"""Persistence backends for company profiles and their documents."""
# ruff: noqa: UP017

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Protocol
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from app.core import database
from app.models.company import CompanyProfile, Document, DocumentMeta, MediaType, ProfileFlag
from app.models.company_record import CompanyRecord, DocumentRecord
from app.observability.metrics import metrics
from app.services.onboarding.errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = frozenset({"name", "sector", "target_raise", "revenue"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileRepository(Protocol):
    """Persistence contract for company profiles."""

    def find_profile_by_owner(self, owner_email: str) -> CompanyProfile | None:
        ...

    def create_profile(self, owner_email: str, fields: dict[str, Any]) -> CompanyProfile:
        ...

    def update_profile(self, profile_id: UUID, patch: dict[str, Any]) -> CompanyProfile:
        ...

    def set_flag(self, profile_id: UUID, flag: ProfileFlag) -> tuple[CompanyProfile, bool]:
        ...

    def append_document(self, profile_id: UUID, meta: DocumentMeta) -> Document:
        ...

    def list_documents(self, profile_id: UUID) -> list[Document]:
        ...


class InMemoryProfileRepository(ProfileRepository):
    """Thread-safe repository used for API/local development."""

    def __init__(self) -> None:
        self._profiles: dict[UUID, CompanyProfile] = {}
        self._owner_index: dict[str, UUID] = {}
        self._documents: dict[UUID, list[Document]] = {}
        self._lock = Lock()

    def find_profile_by_owner(self, owner_email: str) -> CompanyProfile | None:
        with self._lock:
            profile_id = self._owner_index.get(owner_email)
            if profile_id is None:
                return None
            return self._snapshot(profile_id)

    def create_profile(self, owner_email: str, fields: dict[str, Any]) -> CompanyProfile:
        with self._lock:
            if owner_email in self._owner_index:
                raise PersistenceError(
                    "A company profile already exists for this owner.",
                    code="409_PROFILE_CONFLICT",
                )
            now = _utcnow()
            profile = CompanyProfile(
                id=uuid4(),
                owner_email=owner_email,
                created_at=now,
                updated_at=now,
                **_columns(fields),
            )
            self._profiles[profile.id] = profile
            self._owner_index[owner_email] = profile.id
            self._documents[profile.id] = []
            snapshot = self._snapshot(profile.id)
        metrics.increment("persistence.profile_created", tags={"repository": "memory"})
        logger.info(
            "onboarding.persistence.created",
            extra={"profile_id": str(snapshot.id), "backend": "memory"},
        )
        return snapshot

    def update_profile(self, profile_id: UUID, patch: dict[str, Any]) -> CompanyProfile:
        with self._lock:
            current = self._require(profile_id)
            self._profiles[profile_id] = current.model_copy(
                update={**_columns(patch), "updated_at": _utcnow()}
            )
            return self._snapshot(profile_id)

    def set_flag(self, profile_id: UUID, flag: ProfileFlag) -> tuple[CompanyProfile, bool]:
        with self._lock:
            current = self._require(profile_id)
            changed = not getattr(current, flag.value)
            if changed:
                self._profiles[profile_id] = current.model_copy(
                    update={flag.value: True, "updated_at": _utcnow()}
                )
            return self._snapshot(profile_id), changed

    def append_document(self, profile_id: UUID, meta: DocumentMeta) -> Document:
        with self._lock:
            self._require(profile_id)
            document = Document(
                id=uuid4(),
                company_id=profile_id,
                name=meta.name,
                media_type=MediaType(meta.media_type),
                size=meta.size,
                storage_locator=meta.storage_locator,
            )
            self._documents[profile_id].append(document)
        metrics.increment("persistence.document_appended", tags={"repository": "memory"})
        return document.model_copy()

    def list_documents(self, profile_id: UUID) -> list[Document]:
        with self._lock:
            self._require(profile_id)
            return [document.model_copy() for document in self._documents[profile_id]]

    def _require(self, profile_id: UUID) -> CompanyProfile:
        profile = self._profiles.get(profile_id)
        if profile is None:
            raise NotFoundError(f"Company profile {profile_id} not found.")
        return profile

    def _snapshot(self, profile_id: UUID) -> CompanyProfile:
        documents = [document.model_copy() for document in self._documents.get(profile_id, [])]
        return self._profiles[profile_id].model_copy(update={"documents": documents})


class SQLProfileRepository(ProfileRepository):
    """SQLModel-backed repository that persists profiles to Postgres or SQLite."""

    def __init__(self, engine: Engine, *, auto_create_schema: bool = False) -> None:
        self._engine = engine
        if auto_create_schema:
            SQLModel.metadata.create_all(self._engine)
        self._metrics_tags = {"repository": engine.dialect.name}

    def find_profile_by_owner(self, owner_email: str) -> CompanyProfile | None:
        try:
            with self._session() as session:
                statement = select(CompanyRecord).where(CompanyRecord.owner_email == owner_email)
                record = session.exec(statement).first()
                if record is None:
                    return None
                return record.to_company_profile(self._documents(session, record.id))
        except SQLAlchemyError as exc:  # pragma: no cover - defensive guard
            logger.exception(
                "onboarding.persistence.error",
                extra={"operation": "find_profile_by_owner", "backend": "database"},
            )
            raise PersistenceError("Failed to load company profile.") from exc

    def create_profile(self, owner_email: str, fields: dict[str, Any]) -> CompanyProfile:
        record = CompanyRecord(owner_email=owner_email, **_columns(fields))
        try:
            with self._session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                metrics.increment("persistence.profile_created", tags=self._metrics_tags)
                logger.info(
                    "onboarding.persistence.created",
                    extra={"profile_id": str(record.id), "backend": self._metrics_tags["repository"]},
                )
                return record.to_company_profile()
        except IntegrityError as exc:
            logger.warning(
                "onboarding.persistence.conflict",
                extra={"backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError(
                "A company profile already exists for this owner.",
                code="409_PROFILE_CONFLICT",
            ) from exc
        except SQLAlchemyError as exc:
            logger.exception(
                "onboarding.persistence.error",
                extra={"operation": "create_profile", "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to create company profile.") from exc

    def update_profile(self, profile_id: UUID, patch: dict[str, Any]) -> CompanyProfile:
        values = {**_columns(patch), "updated_at": _utcnow()}
        statement = sa.update(CompanyRecord).where(CompanyRecord.id == profile_id).values(**values)
        return self._write(statement, profile_id, operation="update_profile")[0]

    def set_flag(self, profile_id: UUID, flag: ProfileFlag) -> tuple[CompanyProfile, bool]:
        # Conditional single-row update: concurrent writers never clobber the other flag.
        column = getattr(CompanyRecord, flag.value)
        statement = (
            sa.update(CompanyRecord)
            .where(CompanyRecord.id == profile_id, column == sa.false())
            .values({flag.value: True, "updated_at": _utcnow()})
        )
        return self._write(statement, profile_id, operation="set_flag")

    def append_document(self, profile_id: UUID, meta: DocumentMeta) -> Document:
        record = DocumentRecord(
            company_id=profile_id,
            name=meta.name,
            media_type=MediaType(meta.media_type).value,
            size=meta.size,
            storage_locator=meta.storage_locator,
        )
        try:
            with self._session() as session:
                if session.get(CompanyRecord, profile_id) is None:
                    raise NotFoundError(f"Company profile {profile_id} not found.")
                session.add(record)
                session.commit()
                session.refresh(record)
                metrics.increment("persistence.document_appended", tags=self._metrics_tags)
                return record.to_document()
        except SQLAlchemyError as exc:
            logger.exception(
                "onboarding.persistence.error",
                extra={"operation": "append_document", "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to record document.") from exc

    def list_documents(self, profile_id: UUID) -> list[Document]:
        try:
            with self._session() as session:
                if session.get(CompanyRecord, profile_id) is None:
                    raise NotFoundError(f"Company profile {profile_id} not found.")
                return [record.to_document() for record in self._documents(session, profile_id)]
        except SQLAlchemyError as exc:  # pragma: no cover - defensive guard
            logger.exception(
                "onboarding.persistence.error",
                extra={"operation": "list_documents", "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to list documents.") from exc

    def _write(self, statement: Any, profile_id: UUID, *, operation: str) -> tuple[CompanyProfile, bool]:
        try:
            with self._session() as session:
                result = session.execute(statement)
                changed = result.rowcount == 1
                session.commit()
                record = session.get(CompanyRecord, profile_id)
                if record is None:
                    raise NotFoundError(f"Company profile {profile_id} not found.")
                return record.to_company_profile(self._documents(session, profile_id)), changed
        except SQLAlchemyError as exc:
            logger.exception(
                "onboarding.persistence.error",
                extra={"operation": operation, "backend": self._metrics_tags["repository"]},
            )
            raise PersistenceError("Failed to update company profile.") from exc

    @staticmethod
    def _documents(session: Session, profile_id: UUID) -> list[DocumentRecord]:
        statement = (
            select(DocumentRecord)
            .where(DocumentRecord.company_id == profile_id)
            .order_by(DocumentRecord.created_at)
        )
        return list(session.exec(statement).all())

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self._engine) as session:
            yield session


def _columns(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if key in PROFILE_COLUMNS}


def build_profile_repository(engine: Engine | None = None) -> ProfileRepository:
    """Instantiate a ProfileRepository using DATABASE_URL when available."""
    resolved_engine = engine or database.init_database()
    if resolved_engine is None:
        logger.info("onboarding.repository.initialized", extra={"backend": "memory"})
        return InMemoryProfileRepository()
    logger.info("onboarding.repository.initialized", extra={"backend": "database"})
    return SQLProfileRepository(resolved_engine)
