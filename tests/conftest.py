import asyncio
import os

import pytest
from dotenv import load_dotenv

from ticket_intake.schemas.catalog import Asset, Contact, Customer, Zone
from ticket_intake.schemas.tickets import TicketCreated
from ticket_intake.services.intake.scope import IntakeScope
from ticket_intake.services.intake.session import IntakeSession

load_dotenv(os.path.join(os.getcwd(), ".env"))


class FakeFieldServiceClient:
    """In-memory stand-in for FieldServiceClient.

    Each endpoint returns the configured value or raises the configured
    exception. ``customer_gates`` lets a test hold a customer response until
    it sets the matching event; ``creation_gates`` does the same for the
    create_* calls, keyed by method name.
    """

    def __init__(self):
        self.zones: list[Zone] = []
        self.zones_error: Exception | None = None
        self.customers: dict[object, list[Customer]] = {}
        self.customers_error: Exception | None = None
        self.customer_gates: dict[object, asyncio.Event] = {}
        self.creation_gates: dict[str, asyncio.Event] = {}
        self.contact_result: Contact | None = None
        self.contact_error: Exception | None = None
        self.asset_result: Asset | None = None
        self.asset_error: Exception | None = None
        self.ticket_result: TicketCreated | None = None
        self.ticket_error: Exception | None = None
        self.calls: list[tuple[str, object]] = []

    async def list_zones(self, limit=None):
        self.calls.append(("list_zones", limit))
        if self.zones_error:
            raise self.zones_error
        return list(self.zones)

    async def list_customers(self, service_zone_id=None):
        key = "all" if service_zone_id is None else service_zone_id
        self.calls.append(("list_customers", key))
        gate = self.customer_gates.get(key)
        if gate is not None:
            await gate.wait()
        if self.customers_error:
            raise self.customers_error
        return list(self.customers.get(key, []))

    async def create_contact(self, payload):
        self.calls.append(("create_contact", payload))
        await self._wait_for_gate("create_contact")
        if self.contact_error:
            raise self.contact_error
        return self.contact_result

    async def create_asset(self, payload):
        self.calls.append(("create_asset", payload))
        await self._wait_for_gate("create_asset")
        if self.asset_error:
            raise self.asset_error
        return self.asset_result

    async def create_ticket(self, payload):
        self.calls.append(("create_ticket", payload))
        await self._wait_for_gate("create_ticket")
        if self.ticket_error:
            raise self.ticket_error
        return self.ticket_result

    async def _wait_for_gate(self, name: str) -> None:
        gate = self.creation_gates.get(name)
        if gate is not None:
            await gate.wait()

    def called(self, name: str) -> list:
        return [args for call, args in self.calls if call == name]


@pytest.fixture()
def north_zone():
    return Zone(id=1, name="North")


@pytest.fixture()
def acme():
    return Customer(
        id=10,
        name="Acme Corp",
        company_name="Acme",
        service_zone_id=1,
        contacts=[Contact(id=100, name="Bob")],
        assets=[],
    )


@pytest.fixture()
def globex():
    return Customer(
        id=20,
        name="Globex",
        company_name="Globex Industries",
        service_zone_id=7,
        contacts=[
            Contact(id=200, name="Hank", email="hank@globex.test", phone="5550001111"),
            Contact(id=201, name="Marge", email="marge@globex.test", phone="5550002222"),
        ],
        assets=[Asset(id=300, model="TX-9", serial_no="SN-300")],
    )


@pytest.fixture()
def fake_client(north_zone, acme, globex):
    client = FakeFieldServiceClient()
    client.zones = [north_zone, Zone(id=7, name="Coastal")]
    client.customers = {1: [acme], 7: [globex], "all": [acme, globex]}
    return client


@pytest.fixture()
def intake_session(fake_client):
    return IntakeSession(client=fake_client, scope=IntakeScope.admin(), redirect_delay_seconds=1.5)


@pytest.fixture()
def zone_user_session(fake_client):
    return IntakeSession(
        client=fake_client,
        scope=IntakeScope.zone_user([7]),
        redirect_delay_seconds=1.5,
    )
