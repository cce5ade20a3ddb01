import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from app.main import app
from app.models import company_record, notification_record  # noqa: F401 - register tables
from app.services.notifications.repositories import InMemoryNotificationRepository
from app.services.notifications.service import NotificationService, get_notification_service
from app.services.onboarding.coordinator import OnboardingCoordinator, get_onboarding_coordinator
from app.services.onboarding.repositories import InMemoryProfileRepository


class _SyncASGIClient:
    """Minimal synchronous wrapper around httpx.AsyncClient for ASGI apps."""

    def __init__(self, app):
        transport = httpx.ASGITransport(app=app)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    def request(self, method: str, url: str, **kwargs):
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def patch(self, url: str, **kwargs):
        return self.request("PATCH", url, **kwargs)

    def close(self) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture
def notification_service():
    return NotificationService(repository=InMemoryNotificationRepository(), list_limit=50)


@pytest.fixture
def coordinator(notification_service):
    return OnboardingCoordinator(
        repository=InMemoryProfileRepository(),
        publisher=notification_service,
    )


@pytest.fixture
def client(coordinator, notification_service):
    """Create test client wired to in-memory stores, compatible with older/newer httpx releases."""
    app.dependency_overrides[get_onboarding_coordinator] = lambda: coordinator
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    try:
        try:
            test_client = TestClient(app)
        except TypeError:
            test_client = _SyncASGIClient(app)
        yield test_client
        if isinstance(test_client, _SyncASGIClient):
            test_client.close()
    finally:
        app.dependency_overrides.pop(get_onboarding_coordinator, None)
        app.dependency_overrides.pop(get_notification_service, None)


@pytest.fixture
def sqlite_engine():
    """Real in-memory SQLite database with every onboarding table."""
    engine = create_engine(
        "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def company_fields():
    """Sample company data for onboarding step 1."""
    return {"name": "Acme Robotics", "sector": "Technology", "target_raise": 2_000_000, "revenue": 250_000}
