from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.models.company import DocumentMeta, MediaType, ProfileFlag
from app.models.notification import DomainEvent, EventKind
from app.services.notifications.repositories import SQLNotificationRepository
from app.services.notifications.service import NotificationService
from app.services.onboarding.coordinator import OnboardingCoordinator
from app.services.onboarding.errors import NotFoundError, PersistenceError, ValidationError
from app.services.onboarding.repositories import SQLProfileRepository
from app.services.scoring.engine import compute_score

OWNER = "founder@example.com"


@pytest.fixture
def profiles(sqlite_engine):
    return SQLProfileRepository(sqlite_engine)


@pytest.fixture
def notifications(sqlite_engine):
    return SQLNotificationRepository(sqlite_engine)


def _event(owner: str, message: str, created_at: datetime) -> DomainEvent:
    return DomainEvent(
        kind=EventKind.DOCUMENT_ADDED,
        owner_email=owner,
        message=message,
        created_at=created_at,
    )


def test_create_and_find_profile(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)

    found = profiles.find_profile_by_owner(OWNER)

    assert found is not None
    assert found.id == created.id
    assert found.name == "Acme Robotics"
    assert found.revenue == 250_000
    assert found.kyc_verified is False
    assert found.created_at.tzinfo is not None
    assert profiles.find_profile_by_owner("nobody@example.com") is None


def test_duplicate_owner_is_a_conflict(profiles, company_fields):
    profiles.create_profile(OWNER, company_fields)

    with pytest.raises(PersistenceError) as excinfo:
        profiles.create_profile(OWNER, company_fields)

    assert excinfo.value.code == "409_PROFILE_CONFLICT"


def test_update_profile_applies_patch_only(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)

    updated = profiles.update_profile(created.id, {"sector": "Climate"})

    assert updated.sector == "Climate"
    assert updated.name == "Acme Robotics"


def test_update_unknown_profile_raises_not_found(profiles):
    with pytest.raises(NotFoundError):
        profiles.update_profile(uuid4(), {"name": "Ghost"})


def test_set_flag_reports_whether_it_changed(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)

    first, first_changed = profiles.set_flag(created.id, ProfileFlag.KYC_VERIFIED)
    second, second_changed = profiles.set_flag(created.id, ProfileFlag.KYC_VERIFIED)

    assert first_changed is True
    assert second_changed is False
    assert first.kyc_verified is second.kyc_verified is True


def test_flags_set_from_stale_reads_do_not_clobber_each_other(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)
    stale_id = profiles.find_profile_by_owner(OWNER).id

    profiles.set_flag(created.id, ProfileFlag.KYC_VERIFIED)
    after, changed = profiles.set_flag(stale_id, ProfileFlag.FINANCIALS_LINKED)

    assert changed is True
    assert after.kyc_verified is True
    assert after.financials_linked is True


def test_append_and_list_documents(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)

    document = profiles.append_document(
        created.id,
        DocumentMeta(name="model.xlsx", media_type=MediaType.SPREADSHEET.value, size=512),
    )
    profiles.append_document(
        created.id,
        DocumentMeta(name="deck.pptx", media_type=MediaType.PRESENTATION.value, size=1024),
    )

    assert document.company_id == created.id
    assert document.media_type is MediaType.SPREADSHEET
    listed = profiles.list_documents(created.id)
    assert {item.name for item in listed} == {"model.xlsx", "deck.pptx"}
    assert profiles.find_profile_by_owner(OWNER).document_count == 2


def test_documents_require_existing_profile(profiles):
    with pytest.raises(NotFoundError):
        profiles.append_document(uuid4(), DocumentMeta(name="a.pdf", media_type=MediaType.PDF.value))
    with pytest.raises(NotFoundError):
        profiles.list_documents(uuid4())


def test_notifications_are_listed_newest_first_with_limit(notifications):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for index in range(5):
        notifications.add(_event(OWNER, f"event-{index}", base + timedelta(minutes=index)))
    notifications.add(_event("other@example.com", "not yours", base))

    listed = notifications.list_for_owner(OWNER, limit=3)

    assert [item.message for item in listed] == ["event-4", "event-3", "event-2"]
    assert all(item.read is False for item in listed)
    assert len(notifications.list_for_owner(OWNER)) == 5


def test_mark_read_is_scoped_to_owner(notifications):
    stored = notifications.add(_event(OWNER, "mine", datetime.now(timezone.utc)))

    assert notifications.mark_read("intruder@example.com", stored.id) is False
    assert notifications.mark_read(OWNER, uuid4()) is False
    assert notifications.mark_read(OWNER, stored.id) is True
    assert notifications.list_for_owner(OWNER)[0].read is True


def test_mark_all_read_counts_only_unread(notifications):
    now = datetime.now(timezone.utc)
    first = notifications.add(_event(OWNER, "one", now))
    notifications.add(_event(OWNER, "two", now + timedelta(seconds=1)))
    notifications.add(_event("other@example.com", "three", now))
    notifications.mark_read(OWNER, first.id)

    assert notifications.mark_all_read(OWNER) == 1
    assert notifications.mark_all_read(OWNER) == 0
    assert all(item.read for item in notifications.list_for_owner(OWNER))
    assert notifications.list_for_owner("other@example.com")[0].read is False


def test_coordinator_runs_end_to_end_on_sql(sqlite_engine, profiles, notifications, company_fields):
    service = NotificationService(repository=notifications, list_limit=10)
    coordinator = OnboardingCoordinator(repository=profiles, publisher=service)

    coordinator.create_or_update_profile(OWNER, company_fields)
    coordinator.verify_identity(OWNER)
    coordinator.verify_identity(OWNER)
    coordinator.link_financials(OWNER, "tok")
    for name in ("a.pdf", "b.pdf", "c.pdf"):
        coordinator.record_document(OWNER, {"name": name, "media_type": MediaType.PDF.value})

    profile = coordinator.get_profile(OWNER)
    view = compute_score(profile)

    assert view.score == 81
    assert view.recommendation == "Excellent! Your company is highly investable."
    kinds = [item.kind for item in service.list_notifications(OWNER)]
    assert sorted(kind.value for kind in kinds) == sorted(
        ["profile_created", "kyc_verified", "financials_linked"] + ["document_added"] * 3
    )


def test_oversized_document_is_rejected_before_reaching_sql(profiles, notifications, company_fields):
    coordinator = OnboardingCoordinator(
        repository=profiles,
        publisher=NotificationService(repository=notifications),
    )
    coordinator.create_or_update_profile(OWNER, company_fields)

    with pytest.raises(ValidationError) as excinfo:
        coordinator.record_document(OWNER, {"name": "d.pdf", "media_type": MediaType.PDF.value, "size": 2**70})

    assert excinfo.value.code == "422_INVALID_DOCUMENT"
    assert coordinator.list_documents(OWNER) == []


def test_max_document_size_round_trips_through_sql(profiles, company_fields):
    created = profiles.create_profile(OWNER, company_fields)

    document = profiles.append_document(
        created.id,
        DocumentMeta(name="big.pdf", media_type=MediaType.PDF.value, size=2**63 - 1),
    )

    assert profiles.list_documents(created.id)[0].size == document.size == 2**63 - 1
