"""Search filtering and display helpers for the intake dropdowns."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ticket_intake.schemas.catalog import Asset, Contact, Customer
from ticket_intake.services.intake.scope import IntakeScope
from ticket_intake.services.intake.state import IntakeState


def _matches(value: str | None, needle: str) -> bool:
    return bool(value) and needle in value.lower()


def filter_customers(customers: Sequence[Customer], query: str | None) -> list[Customer]:
    if not query or not query.strip():
        return list(customers)
    needle = query.strip().lower()
    return [c for c in customers if _matches(c.company_name, needle) or _matches(c.name, needle)]


def filter_contacts(contacts: Sequence[Contact], query: str | None) -> list[Contact]:
    if not query or not query.strip():
        return list(contacts)
    needle = query.strip().lower()
    return [
        c
        for c in contacts
        if _matches(c.name, needle) or _matches(c.email, needle) or bool(c.phone and query.strip() in c.phone)
    ]


def filter_assets(assets: Sequence[Asset], query: str | None) -> list[Asset]:
    if not query or not query.strip():
        return list(assets)
    needle = query.strip().lower()
    return [a for a in assets if _matches(a.model, needle) or _matches(a.serial_no, needle)]


def asset_label(asset: Asset) -> str:
    return f"{asset.model or 'Unknown model'} (SN: {asset.serial_no or 'N/A'})"


@dataclass(frozen=True)
class FieldAvailability:
    customer: bool
    contact: bool
    asset: bool


def field_availability(state: IntakeState, is_submitting: bool = False) -> FieldAvailability:
    loading = state.is_loading_customers
    has_customer = bool(state.selection.customer_id)
    return FieldAvailability(
        customer=(
            state.selection.zone_id is not None and not loading and not is_submitting and bool(state.customers)
        ),
        contact=has_customer and bool(state.contacts) and not loading and not is_submitting,
        asset=has_customer and bool(state.assets) and not loading and not is_submitting,
    )


def can_submit(state: IntakeState, scope: IntakeScope) -> bool:
    fields = state.fields
    selection = state.selection
    required = [
        len(fields.title) >= 3,
        len(fields.description) >= 10,
        fields.priority is not None,
        selection.zone_id is not None,
        bool(selection.customer_id),
        bool(selection.contact_id),
    ]
    if scope.requires_call_type:
        required.append(fields.call_type is not None)
    if scope.requires_asset:
        required.append(bool(selection.asset_id))
    return all(required)
