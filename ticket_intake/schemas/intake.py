from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ticket_intake.schemas.catalog import Asset, Contact, Customer, Zone
from ticket_intake.schemas.tickets import CallType, TicketPriority
from ticket_intake.services.intake.scope import IntakeMode


class SessionCreate(BaseModel):
    mode: IntakeMode = IntakeMode.admin
    assigned_zone_ids: list[int] = Field(default_factory=list)


class ZoneSelect(BaseModel):
    zone_id: int | Literal["all"] | None = None


class OptionSelect(BaseModel):
    id: int | str | None = None


class TicketFieldsUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    priority: TicketPriority | None = None
    call_type: CallType | None = None
    error_details: str | None = None
    related_machine_ids: str | None = None


class ContactCreateRequest(BaseModel):
    name: str
    phone: str


class AssetCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str
    serial_no: str = Field(alias="serialNo")


class NotificationRead(BaseModel):
    level: str
    message: str


class SelectionRead(BaseModel):
    zone_id: int | Literal["all"] | None = None
    customer_id: str = ""
    contact_id: str = ""
    asset_id: str = ""


class TicketFieldsRead(BaseModel):
    title: str = ""
    description: str = ""
    priority: TicketPriority = TicketPriority.medium
    call_type: CallType | None = None
    error_details: str | None = None
    related_machine_ids: str | None = None


class AvailabilityRead(BaseModel):
    customer: bool
    contact: bool
    asset: bool


class DialogRead(BaseModel):
    is_open: bool = False
    is_saving: bool = False
    values: dict[str, str] = Field(default_factory=dict)


class SessionRead(BaseModel):
    id: str
    mode: IntakeMode
    zones: list[Zone]
    customers: list[Customer]
    contacts: list[Contact]
    assets: list[Asset]
    selection: SelectionRead
    fields: TicketFieldsRead
    availability: AvailabilityRead
    is_loading_zones: bool
    is_loading_customers: bool
    is_submitting: bool
    can_submit: bool
    contact_dialog: DialogRead
    asset_dialog: DialogRead
    notifications: list[NotificationRead] = Field(default_factory=list)


class SubmitRead(BaseModel):
    ticket_id: int | str
    ticket_number: str
    zone_id: int
    message: str
    redirect_to: str
    redirect_delay_seconds: float
    refresh: bool
    notifications: list[NotificationRead] = Field(default_factory=list)


class DialogToggle(BaseModel):
    is_open: bool
