"""Lead source abstract base class -- the interface every CRM backend implements.

The reconciliation pipeline only needs the full list of leads for a fixed,
configured filter. Backends handle pagination internally and raise
``CRMFetchError`` on any failure; a partial list is never returned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LeadSource(ABC):
    """Abstract interface for fetching CRM leads.

    Methods:
        fetch_leads: Return every lead matching the configured filter.
    """

    @abstractmethod
    async def fetch_leads(self) -> list[dict[str, Any]]:
        """Return every lead matching the configured filter."""
        ...
