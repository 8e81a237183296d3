"""Boundary models for the field-service catalog (zones, customers, contacts, assets).

API payloads arrive in camelCase and in a few shapes; everything is
normalised here so the intake logic only ever sees one canonical form.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ServicePersonUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    email: str | None = None


class ServicePerson(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    user: ServicePersonUser | None = None


class Zone(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    description: str | None = None
    is_active: bool = Field(default=True, alias="isActive")
    service_persons: list[ServicePerson] = Field(default_factory=list, alias="servicePersons")


class Contact(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    email: str | None = None
    phone: str | None = None


class Asset(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    model: str | None = None
    serial_no: str | None = Field(default=None, alias="serialNo")

    @model_validator(mode="before")
    @classmethod
    def _merge_serial_fields(cls, data: Any) -> Any:
        # Older endpoints send serialNumber instead of serialNo.
        if isinstance(data, dict) and not data.get("serialNo") and not data.get("serial_no"):
            serial = data.get("serialNumber")
            if serial:
                data = {**data, "serialNo": serial}
        return data


class Customer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str | None = None
    company_name: str = Field(default="", alias="companyName")
    service_zone_id: int = Field(alias="serviceZoneId")
    contacts: list[Contact] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _default_related(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("contacts") is None:
                data["contacts"] = []
            if data.get("assets") is None:
                data["assets"] = []
        return data


def unwrap_list(payload: Any) -> list[dict]:
    """Accept either a bare JSON array or a ``{"data": [...]}`` envelope."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        return []
    raise ValueError(f"Unexpected list payload type: {type(payload).__name__}")


def parse_zones(payload: Any) -> list[Zone]:
    return [Zone.model_validate(item) for item in unwrap_list(payload)]


def parse_customers(payload: Any) -> list[Customer]:
    return [Customer.model_validate(item) for item in unwrap_list(payload)]


def parse_contact(payload: Any) -> Contact:
    return Contact.model_validate(_unwrap_entity(payload))


def parse_asset(payload: Any) -> Asset:
    return Asset.model_validate(_unwrap_entity(payload))


def _unwrap_entity(payload: Any) -> dict:
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected entity payload type: {type(payload).__name__}")
    return payload
