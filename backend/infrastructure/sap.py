"""HTTP client for the SAP Gateway OData services used by the maintenance app."""
from __future__ import annotations

import base64
import logging

import httpx

from backend.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)


class SAPRequestError(RuntimeError):
    """Raised when the upstream call fails or answers with a non-2xx status."""


class SAPODataClient:
    """Issue authenticated OData GET requests against the configured services.

    Every request carries Basic credentials, XML content negotiation headers,
    the ``x-csrf-token: fetch`` probe and the ``sap-usercontext`` cookie that
    pins the SAP client. The returned body is the raw XML payload.
    """

    def __init__(self, settings: Settings, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        if http_client is None and not settings.verify_tls:
            logger.warning("TLS certificate verification is DISABLED for upstream SAP requests")
        self._client = http_client or httpx.AsyncClient(verify=settings.verify_tls, timeout=settings.timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def key_url(base_url: str, field: str, value: str) -> str:
        """Address a single entity through its key predicate."""
        return f"{base_url}({field}='{value}')"

    @staticmethod
    def filter_url(base_url: str, field: str, value: str) -> str:
        """Query an entity set with an ``eq`` filter on ``field``."""
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}$filter=({field} eq '{value}')"

    def _build_headers(self) -> dict[str, str]:
        settings = self._settings
        token = base64.b64encode(f"{settings.username}:{settings.password}".encode("utf-8")).decode("ascii")
        headers = {
            "Authorization": f"Basic {token}",
            "Content-Type": "application/xml",
            "Accept": "application/xml",
            "Cookie": f"sap-usercontext=sap-client={settings.client}",
        }
        if settings.csrf_fetch:
            headers["x-csrf-token"] = "fetch"
        return headers

    @staticmethod
    def _describe(exc: Exception) -> str:
        if isinstance(exc, httpx.HTTPStatusError):
            return f"Request failed with status code {exc.response.status_code}"
        return str(exc) or exc.__class__.__name__

    def _base_url(self, attribute: str) -> str:
        try:
            return self._settings.require(attribute)
        except ConfigurationError as exc:
            logger.warning("Upstream request skipped: %s", exc)
            raise SAPRequestError(str(exc)) from exc

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def get(self, url: str) -> bytes:
        """GET ``url`` and return the response body."""

        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url, headers=self._build_headers())
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            detail = self._describe(exc)
            logger.warning("SAP request to %s failed: %s", url, detail)
            raise SAPRequestError(detail) from exc
        return response.content

    async def fetch_employee(self, employee_id: str) -> bytes:
        return await self.get(self.key_url(self._base_url("login_url"), "EmployeeId", employee_id))

    async def fetch_plant_mapping(self, engineer_id: str) -> bytes:
        return await self.get(self.filter_url(self._base_url("plant_mapping_url"), "MaintEngineer", engineer_id))

    async def fetch_notifications(self, plant_id: str) -> bytes:
        return await self.get(self.filter_url(self._base_url("notifications_url"), "Iwerk", plant_id))

    async def fetch_pm_details(self, engineer_id: str) -> bytes:
        return await self.get(self.filter_url(self._base_url("pm_details_url"), "MaintEngineer", engineer_id))

    async def fetch_work_orders(self, plant_id: str) -> bytes:
        return await self.get(self.filter_url(self._base_url("work_orders_url"), "Werks", plant_id))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["SAPODataClient", "SAPRequestError"]
