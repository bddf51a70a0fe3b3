"""FastAPI dependency injection for pipeline collaborators.

Endpoints take the lead source through ``Depends(get_lead_source)`` so tests
can substitute an in-memory source via ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends

from src.app.config import Settings, get_settings
from src.app.crm.adapter import LeadSource
from src.app.crm.close import CloseLeadClient


def get_app_settings() -> Settings:
    """Settings dependency (overridable in tests)."""
    return get_settings()


def get_lead_source(settings: Settings = Depends(get_app_settings)) -> LeadSource:
    """Build the configured CRM lead source."""
    return CloseLeadClient(
        api_key=settings.CRM_API_KEY,
        lead_filter=settings.CRM_LEAD_FILTER,
        base_url=settings.CRM_BASE_URL,
        page_size=settings.CRM_PAGE_SIZE,
        timeout=settings.CRM_TIMEOUT,
    )
