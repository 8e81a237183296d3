"""Submit-time resolution: draft validation, effective zone, request payloads."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import ValidationError

from ticket_intake.schemas.catalog import Customer
from ticket_intake.schemas.tickets import (
    ALL_ZONES,
    AssetCreate,
    ContactCreate,
    TicketCreated,
    TicketCreatePayload,
    TicketDraft,
    ZoneChoice,
)
from ticket_intake.services.intake.errors import CustomerNotFoundError, IntakeValidationError
from ticket_intake.services.intake.scope import IntakeScope
from ticket_intake.services.intake.state import IntakeState

_FIELD_MESSAGES = {
    "title": "Title must be at least 3 characters",
    "description": "Description must be at least 10 characters",
    "priority": "Please select a priority",
    "call_type": "Call type is required",
    "customer_id": "Customer is required",
    "contact_id": "Contact person is required",
    "asset_id": "Asset is required",
    "zone_id": "Please select a zone",
    "name": "Name must be at least 2 characters",
    "phone": "Phone number must be at least 10 characters",
    "model": "Model must be at least 2 characters",
    "serial_no": "Serial number must be at least 3 characters",
}

_ALIASES = {
    "serialNo": "serial_no",
    "customerId": "customer_id",
    "callType": "call_type",
}


def _field_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        name = _ALIASES.get(str(loc[0]), str(loc[0]))
        errors.setdefault(name, _FIELD_MESSAGES.get(name, error.get("msg", "Invalid value")))
    return errors


def validate_draft(state: IntakeState, scope: IntakeScope) -> TicketDraft:
    """Validate the form the way the submit button does.

    Raises IntakeValidationError listing every failing field.
    """
    selection = state.selection
    fields = state.fields
    errors: dict[str, str] = {}
    draft: TicketDraft | None = None
    try:
        draft = TicketDraft.model_validate(
            {
                "title": fields.title,
                "description": fields.description,
                "priority": fields.priority,
                "call_type": fields.call_type,
                "customer_id": selection.customer_id,
                "contact_id": selection.contact_id,
                "asset_id": selection.asset_id,
                "zone_id": selection.zone_id,
                "error_details": fields.error_details,
                "related_machine_ids": fields.related_machine_ids,
            }
        )
    except ValidationError as exc:
        errors.update(_field_errors(exc))

    if scope.requires_call_type and fields.call_type is None:
        errors.setdefault("call_type", _FIELD_MESSAGES["call_type"])
    if scope.requires_asset and not selection.asset_id:
        errors.setdefault("asset_id", _FIELD_MESSAGES["asset_id"])
    if selection.zone_id == ALL_ZONES and not scope.allows_all_zones:
        errors.setdefault("zone_id", _FIELD_MESSAGES["zone_id"])
    if selection.contact_id and not any(str(c.id) == selection.contact_id for c in state.contacts):
        errors.setdefault("contact_id", "Please select one of the customer's contacts")
    if selection.asset_id and not any(str(a.id) == selection.asset_id for a in state.assets):
        errors.setdefault("asset_id", "Please select one of the customer's assets")

    if errors or draft is None:
        raise IntakeValidationError("Please fix the highlighted fields", errors)
    return draft


def resolve_effective_zone(zone_id: ZoneChoice, customer_id: str, customers: Sequence[Customer]) -> int:
    """Zone id to persist with the ticket.

    ``"all"`` resolves to the selected customer's home zone; a customer
    missing from the loaded list aborts the submit.
    """
    if zone_id != ALL_ZONES:
        return int(zone_id)
    try:
        key = int(customer_id)
    except (TypeError, ValueError):
        raise CustomerNotFoundError() from None
    customer = next((c for c in customers if c.id == key), None)
    if customer is None:
        raise CustomerNotFoundError()
    return customer.service_zone_id


def split_related_machine_ids(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    ids = [part.strip() for part in raw.split(",")]
    ids = [machine_id for machine_id in ids if machine_id]
    return ids or None


def build_ticket_payload(state: IntakeState, scope: IntakeScope) -> TicketCreatePayload:
    draft = validate_draft(state, scope)
    zone_id = resolve_effective_zone(draft.zone_id, draft.customer_id, state.customers)
    return TicketCreatePayload(
        title=draft.title,
        description=draft.description,
        priority=draft.priority,
        call_type=draft.call_type,
        customer_id=int(draft.customer_id),
        contact_id=int(draft.contact_id),
        asset_id=int(draft.asset_id) if draft.asset_id else None,
        zone_id=zone_id,
        error_details=draft.error_details or None,
        related_machine_ids=split_related_machine_ids(draft.related_machine_ids),
    )


def resolve_zone_name(state: IntakeState, zone_id: int) -> str:
    zone = state.find_zone(zone_id)
    if zone:
        return zone.name
    if state.selection.zone_id == ALL_ZONES:
        return "customer's zone"
    return "selected zone"


def ticket_created_message(ticket: TicketCreated, customer: Customer | None, zone_name: str) -> str:
    company = customer.company_name if customer and customer.company_name else "customer"
    return f"Ticket #{ticket.display_number} created for {company} in {zone_name}"


def validate_contact_form(name: str, phone: str, customer_id: str) -> ContactCreate:
    try:
        return ContactCreate(name=name, phone=phone, customer_id=int(customer_id))
    except ValidationError as exc:
        raise IntakeValidationError("Please fix the contact details", _field_errors(exc)) from exc


def validate_asset_form(model: str, serial_no: str, customer_id: str) -> AssetCreate:
    try:
        return AssetCreate(model=model, serial_no=serial_no, customer_id=int(customer_id))
    except ValidationError as exc:
        raise IntakeValidationError("Please fix the asset details", _field_errors(exc)) from exc


def extract_error_message(
    exc: Exception,
    default: str,
    keys: Iterable[str] = ("message", "error"),
    use_exception_text: bool = True,
) -> str:
    """Most specific message available for a failed request.

    Looks at the structured response body first (``keys`` in order), then
    the exception's own message, then ``default``.
    """
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        for key in keys:
            value = response.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if use_exception_text:
        text = getattr(exc, "message", None) or str(exc)
        if text:
            return text
    return default
