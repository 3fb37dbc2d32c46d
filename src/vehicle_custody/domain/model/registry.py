"""Canonical registry entries; reconciliation only reads them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.model.entity import Entity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class CanonicalVehicle(Entity):
    plate: str
    # updated when committed transfers change the vehicle's holder
    current_driver_id: UUID | None = None


@dataclass(eq=False, kw_only=True)
class CanonicalDriver(Entity):
    name: str


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Point-in-time copy of the registry used for one reconciliation call."""

    vehicles: tuple[CanonicalVehicle, ...] = ()
    drivers: tuple[CanonicalDriver, ...] = ()
    _vehicles_by_id: dict[UUID, CanonicalVehicle] = field(init=False, repr=False)
    _drivers_by_id: dict[UUID, CanonicalDriver] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_vehicles_by_id", {v.id: v for v in self.vehicles})
        object.__setattr__(self, "_drivers_by_id", {d.id: d for d in self.drivers})

    @classmethod
    def of(
        cls,
        *,
        vehicles: Iterable[CanonicalVehicle] = (),
        drivers: Iterable[CanonicalDriver] = (),
    ) -> RegistrySnapshot:
        return cls(vehicles=tuple(vehicles), drivers=tuple(drivers))

    def vehicle(self, vehicle_id: UUID) -> CanonicalVehicle | None:
        return self._vehicles_by_id.get(vehicle_id)

    def driver(self, driver_id: UUID) -> CanonicalDriver | None:
        return self._drivers_by_id.get(driver_id)
