"""Who is filling in the intake form, and what that allows."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ticket_intake.schemas.catalog import Zone


class IntakeMode(enum.Enum):
    admin = "admin"
    zone = "zone"


@dataclass(frozen=True)
class IntakeScope:
    mode: IntakeMode = IntakeMode.admin
    assigned_zone_ids: frozenset[int] = frozenset()

    @classmethod
    def admin(cls) -> "IntakeScope":
        return cls(mode=IntakeMode.admin)

    @classmethod
    def zone_user(cls, zone_ids: Iterable[int]) -> "IntakeScope":
        return cls(mode=IntakeMode.zone, assigned_zone_ids=frozenset(zone_ids))

    @property
    def allows_all_zones(self) -> bool:
        return self.mode == IntakeMode.admin

    @property
    def requires_asset(self) -> bool:
        return self.mode == IntakeMode.admin

    @property
    def requires_call_type(self) -> bool:
        return self.mode == IntakeMode.admin

    @property
    def tickets_path(self) -> str:
        if self.mode == IntakeMode.zone:
            return "/zone/tickets"
        return "/admin/tickets"

    def visible_zones(self, zones: Sequence[Zone]) -> list[Zone]:
        if self.mode == IntakeMode.admin:
            return list(zones)
        return [zone for zone in zones if zone.id in self.assigned_zone_ids]
