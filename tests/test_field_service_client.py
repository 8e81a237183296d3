import json

import httpx
import pytest

from ticket_intake.schemas.tickets import AssetCreate, ContactCreate, TicketCreatePayload, TicketPriority
from ticket_intake.services.field_service_client import (
    FieldServiceAuthError,
    FieldServiceClient,
    FieldServiceError,
    FieldServiceNotFoundError,
    FieldServiceRateLimitError,
)


def _client(handler) -> FieldServiceClient:
    return FieldServiceClient(
        base_url="http://fsm.test/api/",
        token="secret",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_list_zones_unwraps_envelope_and_sends_limit():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": 1,
                        "name": "North",
                        "isActive": True,
                        "servicePersons": [{"id": 4, "user": {"id": 9, "email": "tech@fsm.test"}}],
                    }
                ],
                "pagination": {"total": 1},
            },
        )

    async with _client(handler) as client:
        zones = await client.list_zones(limit=100)

    assert seen["url"] == "http://fsm.test/api/service-zones?limit=100"
    assert seen["auth"] == "Bearer secret"
    assert zones[0].name == "North"
    assert zones[0].service_persons[0].user.email == "tech@fsm.test"


@pytest.mark.asyncio
async def test_list_customers_scoped_and_all_zone_queries():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url)
        return httpx.Response(
            200,
            json=[
                {
                    "id": 10,
                    "name": "Acme Corp",
                    "companyName": "Acme",
                    "serviceZoneId": 1,
                    "contacts": [{"id": 100, "name": "Bob", "email": "bob@acme.test", "phone": "5550000000"}],
                    "assets": None,
                }
            ],
        )

    async with _client(handler) as client:
        scoped = await client.list_customers(service_zone_id=1)
        everywhere = await client.list_customers()

    assert urls[0].params["serviceZoneId"] == "1"
    assert urls[0].params["include"] == "contacts,assets"
    assert "serviceZoneId" not in urls[1].params
    assert urls[1].params["include"] == "contacts,assets"
    assert scoped[0].company_name == "Acme"
    assert scoped[0].assets == []
    assert everywhere[0].contacts[0].id == 100


@pytest.mark.asyncio
async def test_create_asset_posts_api_field_names_and_normalises_serial():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 55, "model": "X200", "serialNumber": "SN-1"})

    async with _client(handler) as client:
        asset = await client.create_asset(AssetCreate(model="X200", serial_no="SN-1", customer_id=10))

    assert bodies == [{"model": "X200", "serialNo": "SN-1", "customerId": 10}]
    assert asset.serial_no == "SN-1"


@pytest.mark.asyncio
async def test_create_contact_posts_customer_id():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 101, "name": "Carol", "phone": "5551234567"})

    async with _client(handler) as client:
        contact = await client.create_contact(ContactCreate(name="Carol", phone="5551234567", customer_id=10))

    assert bodies == [{"name": "Carol", "phone": "5551234567", "customerId": 10}]
    assert contact.id == 101


@pytest.mark.asyncio
async def test_create_ticket_omits_unset_fields():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 77, "ticketNumber": "T-77", "status": "OPEN"})

    payload = TicketCreatePayload(
        title="Compressor fault",
        description="Unit trips after ten minutes",
        priority=TicketPriority.high,
        customer_id=10,
        contact_id=100,
        zone_id=1,
    )
    async with _client(handler) as client:
        ticket = await client.create_ticket(payload)

    assert bodies == [
        {
            "title": "Compressor fault",
            "description": "Unit trips after ten minutes",
            "priority": "HIGH",
            "customerId": 10,
            "contactId": 100,
            "zoneId": 1,
        }
    ]
    assert ticket.display_number == "T-77"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error_cls"),
    [
        (401, FieldServiceAuthError),
        (403, FieldServiceAuthError),
        (404, FieldServiceNotFoundError),
        (429, FieldServiceRateLimitError),
    ],
)
async def test_error_status_codes_map_to_exceptions(status_code, error_cls):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json={"message": "nope"}, headers={"Retry-After": "3"})

    async with _client(handler) as client:
        with pytest.raises(error_cls) as exc_info:
            await client.list_zones()

    assert exc_info.value.status_code == status_code
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_error_keeps_response_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "Serial number already exists"})

    async with _client(handler) as client:
        with pytest.raises(FieldServiceError) as exc_info:
            await client.create_asset(AssetCreate(model="X200", serial_no="SN-1", customer_id=10))

    assert exc_info.value.response == {"message": "Serial number already exists"}
    assert "Serial number already exists" in exc_info.value.message


@pytest.mark.asyncio
async def test_network_errors_are_wrapped_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(FieldServiceError, match="Request failed"):
            await client.list_customers(service_zone_id=1)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unexpected_list_shape_raises_value_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json="not a list")

    async with _client(handler) as client:
        with pytest.raises(ValueError):
            await client.list_zones()
