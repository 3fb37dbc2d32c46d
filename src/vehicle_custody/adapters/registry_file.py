"""JSON registry files: ``{"vehicles": [...], "drivers": [...]}``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vehicle_custody.domain.extraction.normalize import normalize_plate
from vehicle_custody.domain.model import CanonicalDriver, CanonicalVehicle

if TYPE_CHECKING:
    from vehicle_custody.domain.ports import RegistryUnitOfWorkFactory

log = logging.getLogger(__name__)


class RegistryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class VehicleEntry(RegistryBaseModel):
    id: UUID | None = None
    plate: str = Field(min_length=1)

    @field_validator("plate")
    @classmethod
    def _normalize_plate(cls, value: str) -> str:
        plate = normalize_plate(value)
        if not plate:
            raise ValueError(f"Plate has no usable characters: {value!r}")
        return plate


class DriverEntry(RegistryBaseModel):
    id: UUID | None = None
    name: str = Field(min_length=1)


class RegistryFile(RegistryBaseModel):
    vehicles: list[VehicleEntry] = Field(default_factory=list[VehicleEntry])
    drivers: list[DriverEntry] = Field(default_factory=list[DriverEntry])


@dataclass(slots=True)
class RegistryImportResult:
    vehicles_added: int = 0
    drivers_added: int = 0
    skipped: int = 0


def load_registry_file(path: Path | str) -> RegistryFile:
    return RegistryFile.model_validate_json(Path(path).read_text(encoding="utf-8"))


def import_registry(
    payload: RegistryFile,
    uow_factory: RegistryUnitOfWorkFactory,
) -> RegistryImportResult:
    """Add entries not yet registered; existing plates and names are left untouched."""

    result = RegistryImportResult()
    with uow_factory() as uow:
        vehicles = uow.repositories.vehicles
        drivers = uow.repositories.drivers
        for vehicle_entry in payload.vehicles:
            if vehicles.get_by_plate(vehicle_entry.plate) is not None:
                result.skipped += 1
                continue
            vehicle = CanonicalVehicle(plate=vehicle_entry.plate)
            if vehicle_entry.id is not None:
                vehicle.id = vehicle_entry.id
            vehicles.add(vehicle)
            result.vehicles_added += 1
        for driver_entry in payload.drivers:
            if drivers.get_by_name(driver_entry.name) is not None:
                result.skipped += 1
                continue
            driver = CanonicalDriver(name=driver_entry.name)
            if driver_entry.id is not None:
                driver.id = driver_entry.id
            drivers.add(driver)
            result.drivers_added += 1
        uow.commit()

    log.info(
        "Registry import: vehicles=%s drivers=%s skipped=%s",
        result.vehicles_added,
        result.drivers_added,
        result.skipped,
    )
    return result
