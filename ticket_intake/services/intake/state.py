"""Intake form state and its transitions.

Every transition is a pure function ``(state, ...) -> state``. The session
object performs network calls and feeds their results through these
functions, so the reset and auto-select rules are testable on their own.

Customer responses are tagged with the ``zone_generation`` they were
requested under; a response whose generation is no longer current belongs
to a superseded zone selection and is dropped.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from ticket_intake.schemas.catalog import Asset, Contact, Customer, Zone
from ticket_intake.schemas.tickets import ALL_ZONES, CallType, TicketPriority, ZoneChoice
from ticket_intake.services.intake.errors import IntakeValidationError


@dataclass(frozen=True)
class Selection:
    zone_id: ZoneChoice | None = None
    customer_id: str = ""
    contact_id: str = ""
    asset_id: str = ""


@dataclass(frozen=True)
class TicketFields:
    title: str = ""
    description: str = ""
    priority: TicketPriority = TicketPriority.medium
    call_type: CallType | None = None
    error_details: str | None = None
    related_machine_ids: str | None = None


@dataclass(frozen=True)
class IntakeState:
    zones: tuple[Zone, ...] = ()
    customers: tuple[Customer, ...] = ()
    contacts: tuple[Contact, ...] = ()
    assets: tuple[Asset, ...] = ()
    selection: Selection = field(default_factory=Selection)
    fields: TicketFields = field(default_factory=TicketFields)
    zone_generation: int = 0
    is_loading_zones: bool = False
    is_loading_customers: bool = False

    def find_customer(self, customer_id: str | int | None) -> Customer | None:
        key = _as_int(customer_id)
        if key is None:
            return None
        return next((customer for customer in self.customers if customer.id == key), None)

    def find_zone(self, zone_id: int | None) -> Zone | None:
        if zone_id is None:
            return None
        return next((zone for zone in self.zones if zone.id == zone_id), None)


def _as_int(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def normalize_zone_choice(value: object) -> ZoneChoice | None:
    if value is None or value == "":
        return None
    if value == ALL_ZONES:
        return ALL_ZONES
    if isinstance(value, bool):
        raise IntakeValidationError("Please select a zone", {"zone_id": "Please select a zone"})
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise IntakeValidationError("Please select a zone", {"zone_id": "Please select a zone"})


def normalize_form_id(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _cleared_dependents(selection: Selection) -> Selection:
    return replace(selection, customer_id="", contact_id="", asset_id="")


# -- zone catalog ----------------------------------------------------------


def zones_loading(state: IntakeState) -> IntakeState:
    return replace(state, is_loading_zones=True)


def zones_loaded(state: IntakeState, zones: Sequence[Zone]) -> IntakeState:
    return replace(state, zones=tuple(zones), is_loading_zones=False)


def zones_failed(state: IntakeState) -> IntakeState:
    return replace(state, zones=(), is_loading_zones=False)


# -- zone -> customers -----------------------------------------------------


def zone_changed(state: IntakeState, zone_id: object) -> IntakeState:
    """Select a zone (or clear it).

    Re-selecting the current zone leaves the state untouched. Any other
    change resets every customer-dependent field and starts a new
    generation; the customer list stays empty until the load for that
    generation lands.
    """
    choice = normalize_zone_choice(zone_id)
    if choice == state.selection.zone_id:
        return state
    return replace(
        state,
        customers=(),
        contacts=(),
        assets=(),
        selection=replace(_cleared_dependents(state.selection), zone_id=choice),
        zone_generation=state.zone_generation + 1,
        is_loading_customers=choice is not None,
    )


def customers_loaded(state: IntakeState, generation: int, customers: Sequence[Customer]) -> IntakeState:
    if generation != state.zone_generation:
        return state
    return replace(
        state,
        customers=tuple(customers),
        contacts=(),
        assets=(),
        selection=_cleared_dependents(state.selection),
        is_loading_customers=False,
    )


def customers_failed(state: IntakeState, generation: int) -> IntakeState:
    if generation != state.zone_generation:
        return state
    return replace(
        state,
        customers=(),
        contacts=(),
        assets=(),
        selection=_cleared_dependents(state.selection),
        is_loading_customers=False,
    )


def is_current_generation(state: IntakeState, generation: int) -> bool:
    return generation == state.zone_generation


# -- customer -> contacts / assets -----------------------------------------


def customer_changed(state: IntakeState, customer_id: object) -> IntakeState:
    """Repopulate contacts and assets from the in-memory customer record.

    A customer with exactly one contact (or asset) gets it selected; the two
    lists are handled independently.
    """
    new_id = normalize_form_id(customer_id)
    if new_id == state.selection.customer_id:
        return state

    selection = replace(state.selection, customer_id=new_id, contact_id="", asset_id="")
    if not new_id:
        return replace(state, contacts=(), assets=(), selection=selection)

    customer = state.find_customer(new_id)
    contacts = tuple(customer.contacts) if customer else ()
    assets = tuple(customer.assets) if customer else ()
    if len(contacts) == 1:
        selection = replace(selection, contact_id=str(contacts[0].id))
    if len(assets) == 1:
        selection = replace(selection, asset_id=str(assets[0].id))
    return replace(state, contacts=contacts, assets=assets, selection=selection)


def contact_selected(state: IntakeState, contact_id: object) -> IntakeState:
    new_id = normalize_form_id(contact_id)
    if new_id and not any(str(contact.id) == new_id for contact in state.contacts):
        raise IntakeValidationError(
            "Contact does not belong to the selected customer",
            {"contact_id": "Please select one of the customer's contacts"},
        )
    return replace(state, selection=replace(state.selection, contact_id=new_id))


def asset_selected(state: IntakeState, asset_id: object) -> IntakeState:
    new_id = normalize_form_id(asset_id)
    if new_id and not any(str(asset.id) == new_id for asset in state.assets):
        raise IntakeValidationError(
            "Asset does not belong to the selected customer",
            {"asset_id": "Please select one of the customer's assets"},
        )
    return replace(state, selection=replace(state.selection, asset_id=new_id))


# -- inline creation -------------------------------------------------------


def contact_created(state: IntakeState, customer_id: str, contact: Contact) -> IntakeState:
    """Merge a freshly created contact without reloading the customer.

    The cached customer record always gains the contact. The displayed list
    and the selection only change if that customer is still selected.
    """
    customers = tuple(
        customer.model_copy(update={"contacts": [*customer.contacts, contact]})
        if str(customer.id) == customer_id
        else customer
        for customer in state.customers
    )
    if state.selection.customer_id != customer_id:
        return replace(state, customers=customers)
    return replace(
        state,
        customers=customers,
        contacts=(*state.contacts, contact),
        selection=replace(state.selection, contact_id=str(contact.id)),
    )


def asset_created(state: IntakeState, customer_id: str, asset: Asset) -> IntakeState:
    customers = tuple(
        customer.model_copy(update={"assets": [*customer.assets, asset]})
        if str(customer.id) == customer_id
        else customer
        for customer in state.customers
    )
    if state.selection.customer_id != customer_id:
        return replace(state, customers=customers)
    return replace(
        state,
        customers=customers,
        assets=(*state.assets, asset),
        selection=replace(state.selection, asset_id=str(asset.id)),
    )


# -- free-text fields and reset --------------------------------------------


def fields_updated(state: IntakeState, **changes) -> IntakeState:
    unknown = set(changes) - set(TicketFields.__dataclass_fields__)
    if unknown:
        raise IntakeValidationError(f"Unknown ticket fields: {', '.join(sorted(unknown))}")
    return replace(state, fields=replace(state.fields, **changes))


def form_reset(state: IntakeState) -> IntakeState:
    """Back to defaults; the zone catalog is kept and in-flight loads are dropped."""
    return IntakeState(
        zones=state.zones,
        zone_generation=state.zone_generation + 1,
    )
