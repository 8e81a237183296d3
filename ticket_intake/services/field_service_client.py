"""Async HTTP client for the field-service REST API.

Covers the endpoints the ticket intake flow needs:

- ``GET /service-zones``
- ``GET /customers`` (zone-scoped or across all zones)
- ``POST /contacts`` and ``POST /assets``
- ``POST /tickets``

Requests are never retried; every failure surfaces to the caller as a
``FieldServiceError`` so the intake flow can decide what to show.

Usage:
    async with FieldServiceClient(base_url="https://fsm.example.com/api") as client:
        zones = await client.list_zones()
"""

from __future__ import annotations

from typing import Any

import httpx

from ticket_intake.config import settings
from ticket_intake.logging import get_logger
from ticket_intake.schemas.catalog import (
    Asset,
    Contact,
    Customer,
    Zone,
    parse_asset,
    parse_contact,
    parse_customers,
    parse_zones,
)
from ticket_intake.schemas.tickets import (
    AssetCreate,
    ContactCreate,
    TicketCreated,
    TicketCreatePayload,
)

logger = get_logger(__name__)

RELATED_INCLUDE = "contacts,assets"


class FieldServiceError(Exception):
    """Base exception for field-service API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class FieldServiceAuthError(FieldServiceError):
    """Authentication error (401/403)."""

    pass


class FieldServiceNotFoundError(FieldServiceError):
    """Resource not found (404)."""

    pass


class FieldServiceRateLimitError(FieldServiceError):
    """Rate limit exceeded (429)."""

    def __init__(self, message: str, retry_after: int | None = None, response: Any = None):
        super().__init__(message, status_code=429, response=response)
        self.retry_after = retry_after


class FieldServiceClient:
    """Thin async wrapper over the field-service REST API.

    Attributes:
        base_url: API root (e.g. https://fsm.example.com/api)
        token: Optional bearer token forwarded on every request
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.field_service_api_url).rstrip("/")
        self.token = token if token is not None else settings.field_service_api_token
        self.timeout = timeout if timeout is not None else settings.field_service_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "ticket-intake/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    def _handle_response(self, response: httpx.Response) -> Any:
        if response.status_code == 204:
            return None

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if response.status_code in (401, 403):
            raise FieldServiceAuthError(
                f"Authentication failed: {response.status_code}",
                status_code=response.status_code,
                response=data,
            )

        if response.status_code == 404:
            raise FieldServiceNotFoundError(
                "Resource not found",
                status_code=404,
                response=data,
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise FieldServiceRateLimitError(
                "Rate limit exceeded",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                response=data,
            )

        if response.status_code >= 400:
            if isinstance(data, dict):
                error_msg = data.get("message") or data.get("error") or data.get("detail") or str(data)
            else:
                error_msg = response.text or str(data)
            logger.warning("field_service_api_error status=%s body=%s", response.status_code, data)
            raise FieldServiceError(
                f"API error ({response.status_code}): {error_msg}",
                status_code=response.status_code,
                response=data,
            )

        return data

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json_data: dict | None = None,
    ) -> Any:
        """Make a single HTTP request.

        Args:
            method: HTTP method (GET, POST)
            path: API path relative to ``base_url`` (e.g. "/customers")
            params: Query parameters
            json_data: JSON body

        Returns:
            Parsed JSON response

        Raises:
            FieldServiceError: On API, network or timeout errors
        """
        client = self._get_client()
        try:
            response = await client.request(method, path, params=params, json=json_data)
        except httpx.TimeoutException as e:
            logger.warning("field_service_timeout method=%s path=%s", method, path)
            raise FieldServiceError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            logger.warning("field_service_request_failed method=%s path=%s error=%s", method, path, e)
            raise FieldServiceError(f"Request failed: {e}") from e
        return self._handle_response(response)

    async def list_zones(self, limit: int | None = None) -> list[Zone]:
        payload = await self._request(
            "GET",
            "/service-zones",
            params={"limit": limit or settings.zone_catalog_limit},
        )
        return parse_zones(payload)

    async def list_customers(self, service_zone_id: int | None = None) -> list[Customer]:
        """List customers with contacts and assets embedded.

        ``service_zone_id=None`` lists customers across every zone.
        """
        params: dict[str, Any] = {"include": RELATED_INCLUDE}
        if service_zone_id is not None:
            params["serviceZoneId"] = service_zone_id
        payload = await self._request("GET", "/customers", params=params)
        return parse_customers(payload)

    async def create_contact(self, payload: ContactCreate) -> Contact:
        data = await self._request(
            "POST",
            "/contacts",
            json_data=payload.model_dump(mode="json", by_alias=True),
        )
        return parse_contact(data)

    async def create_asset(self, payload: AssetCreate) -> Asset:
        data = await self._request(
            "POST",
            "/assets",
            json_data=payload.model_dump(mode="json", by_alias=True),
        )
        return parse_asset(data)

    async def create_ticket(self, payload: TicketCreatePayload) -> TicketCreated:
        data = await self._request("POST", "/tickets", json_data=payload.to_request_body())
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        return TicketCreated.model_validate(data)
