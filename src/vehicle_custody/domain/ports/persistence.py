"""Ports for persisting ledger records and the canonical registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from vehicle_custody.domain.model import (
    CanonicalDriver,
    CanonicalVehicle,
    CustodyTransfer,
    DailyProcessingRecord,
    PendingNotification,
    SentAlertRecord,
)

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from vehicle_custody.domain.model import AlertKind


class PersistenceError(RuntimeError):
    """Raised by adapters when the backing store cannot be read or written."""


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ProcessingRecordRepository(Repository[DailyProcessingRecord], Protocol):
    """Append-only store of processing records."""

    def latest_for(self, day: date) -> DailyProcessingRecord | None: ...

    def list_for(self, day: date) -> list[DailyProcessingRecord]: ...


@runtime_checkable
class SentAlertRepository(Repository[SentAlertRecord], Protocol):
    """Idempotency markers for alerts already dispatched."""

    def exists(self, day: date, kind: AlertKind) -> bool: ...


@runtime_checkable
class PendingNotificationRepository(Repository[PendingNotification], Protocol):
    """Notifications the transport could not deliver."""

    def list_pending(self) -> list[PendingNotification]: ...


@runtime_checkable
class VehicleRepository(Repository[CanonicalVehicle], Protocol):
    def get(self, vehicle_id: UUID) -> CanonicalVehicle | None: ...

    def list_all(self) -> list[CanonicalVehicle]: ...

    def get_by_plate(self, plate: str) -> CanonicalVehicle | None: ...


@runtime_checkable
class DriverRepository(Repository[CanonicalDriver], Protocol):
    def list_all(self) -> list[CanonicalDriver]: ...

    def get_by_name(self, name: str) -> CanonicalDriver | None: ...


@runtime_checkable
class CustodyTransferRepository(Repository[CustodyTransfer], Protocol):
    """Committed transfers, replaced as a whole per ledger date."""

    def list_for(self, day: date) -> list[CustodyTransfer]: ...

    def remove_for(self, day: date) -> set[UUID]:
        """Delete the transfers of ``day`` and return the vehicles they touched."""
        ...

    def latest_for_vehicle(self, vehicle_id: UUID) -> CustodyTransfer | None: ...
