from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ALL_ZONES = "all"

ZoneChoice = int | Literal["all"]


class TicketPriority(enum.Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"


class CallType(enum.Enum):
    under_maintenance_contract = "UNDER_MAINTENANCE_CONTRACT"
    not_under_contract = "NOT_UNDER_CONTRACT"


class TicketDraft(BaseModel):
    """Form-level view of a ticket before zone resolution.

    Ids are the raw form strings; ``""`` means nothing selected.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    priority: TicketPriority = TicketPriority.medium
    call_type: CallType | None = None
    customer_id: str = Field(min_length=1)
    contact_id: str = Field(min_length=1)
    asset_id: str = ""
    zone_id: ZoneChoice
    error_details: str | None = None
    related_machine_ids: str | None = None


class ContactCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    customer_id: int = Field(alias="customerId")


class AssetCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str = Field(min_length=2)
    serial_no: str = Field(min_length=3, alias="serialNo")
    customer_id: int = Field(alias="customerId")


class TicketCreatePayload(BaseModel):
    """Body of ``POST /tickets`` after zone resolution."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    priority: TicketPriority
    call_type: CallType | None = Field(default=None, alias="callType")
    customer_id: int = Field(alias="customerId")
    contact_id: int = Field(alias="contactId")
    asset_id: int | None = Field(default=None, alias="assetId")
    zone_id: int = Field(alias="zoneId")
    error_details: str | None = Field(default=None, alias="errorDetails")
    related_machine_ids: list[str] | None = Field(default=None, alias="relatedMachineIds")

    def to_request_body(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TicketCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int | str
    ticket_number: str | int | None = Field(default=None, alias="ticketNumber")

    @property
    def display_number(self) -> str:
        if self.ticket_number is not None:
            return str(self.ticket_number)
        return str(self.id)
