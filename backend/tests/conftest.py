"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from telehealth.api.clinical import get_assessment_cache
from telehealth.main import app
from telehealth.services.analytics import ClinicalAnalytics, get_clinical_analytics
from telehealth.services.assessment_cache import AssessmentCache


class FakeRedis:
    """Minimal in-memory stand-in for the two Redis calls the cache makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True


@pytest.fixture
def fake_redis() -> FakeRedis:
    """In-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def analytics() -> ClinicalAnalytics:
    """Fresh analytics recorder, isolated from the process singleton."""
    return ClinicalAnalytics()


@pytest.fixture
async def client(
    fake_redis: FakeRedis,
    analytics: ClinicalAnalytics,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with an in-memory cache and fresh analytics.

    This allows testing API endpoints without a Redis server.
    """
    app.dependency_overrides[get_assessment_cache] = lambda: AssessmentCache(lambda: fake_redis)
    app.dependency_overrides[get_clinical_analytics] = lambda: analytics

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
