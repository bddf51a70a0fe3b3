"""Close CRM lead client over the REST API.

Pages through ``GET /lead/`` with ``_skip``/``_limit`` until the response's
``has_more`` flag is false. Authenticates with HTTP basic auth using the API
key as username. Any transport error, non-2xx status or malformed body
raises ``CRMFetchError``; there are no retries.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.app.core.errors import CRMFetchError
from src.app.core.monitoring import crm_requests_total
from src.app.crm.adapter import LeadSource

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.close.com/api/v1"


class CloseLeadClient(LeadSource):
    """Fetches leads matching a fixed search query from Close.

    Args:
        api_key: Close API key.
        lead_filter: Lead search query sent as ``query`` (empty = all leads).
        base_url: API root, e.g. ``https://api.close.com/api/v1``.
        page_size: Leads requested per page (``_limit``).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        lead_filter: str = "",
        *,
        base_url: str = DEFAULT_BASE_URL,
        page_size: int = 100,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._lead_filter = lead_filter
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client bound to the API root."""
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth(self._api_key, ""),
            headers={"Accept": "application/json"},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _fetch_page(self, client: httpx.AsyncClient, skip: int) -> dict[str, Any]:
        params: dict[str, Any] = {"_skip": skip, "_limit": self._page_size}
        if self._lead_filter:
            params["query"] = self._lead_filter

        try:
            response = await client.get("/lead/", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            crm_requests_total.labels(status="error").inc()
            status_code = exc.response.status_code
            raise CRMFetchError(
                f"CRM lead fetch failed with HTTP {status_code}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            crm_requests_total.labels(status="error").inc()
            raise CRMFetchError(f"CRM lead fetch failed: {exc}") from exc
        except ValueError as exc:
            crm_requests_total.labels(status="error").inc()
            raise CRMFetchError("CRM returned a non-JSON response") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("data", []), list):
            crm_requests_total.labels(status="error").inc()
            raise CRMFetchError("CRM returned an unexpected response shape")

        crm_requests_total.labels(status="success").inc()
        return payload

    async def fetch_leads(self) -> list[dict[str, Any]]:
        """Fetch every page of leads for the configured query."""
        if not self._api_key:
            raise CRMFetchError("CRM API key is not configured")

        leads: list[dict[str, Any]] = []
        skip = 0
        async with self._client() as client:
            while True:
                payload = await self._fetch_page(client, skip)
                page = payload.get("data") or []
                leads.extend(page)
                logger.debug("crm.page_fetched", skip=skip, count=len(page))

                if not payload.get("has_more") or not page:
                    break
                skip += len(page)

        logger.info("crm.leads_fetched", total=len(leads))
        return leads
