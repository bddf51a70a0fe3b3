"""Shared test fixtures for extraction, reconciliation, and API tests.

Provides:
- Sample project XML fixture
- In-memory CRM lead sources (working and failing)
- FastAPI test app with the lead source and settings overridden
- Async HTTP client for API testing
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.app.api.deps import get_app_settings, get_lead_source
from src.app.config import Settings
from src.app.core.errors import CRMFetchError
from src.app.main import create_app
from tests.factories import PROJECTS_XML, STAGE_FIELD, URL_FIELD, InMemoryLeadSource, make_lead


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def projects_xml() -> bytes:
    return PROJECTS_XML


@pytest.fixture
def test_settings() -> Settings:
    return Settings(CRM_API_KEY="test-key", CRM_URL_FIELD=URL_FIELD, CRM_STAGE_FIELD=STAGE_FIELD)


@pytest.fixture
def lead_source() -> InMemoryLeadSource:
    return InMemoryLeadSource(
        leads=[
            make_lead("https://crm.example.com/p/111/1", "Pre-Bid", id="lead_same"),
            make_lead("https://crm.example.com/p/222/7", "Bid Date Set", id="lead_stale"),
            make_lead("https://crm.example.com/p/999/1", "OB", id="lead_unmatched"),
            make_lead(None, "OB", id="lead_no_url"),
        ]
    )


@pytest.fixture
def app(test_settings, lead_source):
    """FastAPI app with settings and the CRM lead source overridden."""
    application = create_app()
    application.dependency_overrides[get_app_settings] = lambda: test_settings
    application.dependency_overrides[get_lead_source] = lambda: lead_source
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def failing_lead_source() -> InMemoryLeadSource:
    return InMemoryLeadSource(error=CRMFetchError("CRM lead fetch failed with HTTP 503", status_code=503))
