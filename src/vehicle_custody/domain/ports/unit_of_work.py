"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from vehicle_custody.domain.ports.persistence import (
        CustodyTransferRepository,
        DriverRepository,
        PendingNotificationRepository,
        ProcessingRecordRepository,
        SentAlertRepository,
        VehicleRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class LedgerRepositories(RepositoryCollection):
    """Repositories behind the processing ledger and alert bookkeeping."""

    processing_records: ProcessingRecordRepository
    sent_alerts: SentAlertRepository
    pending_notifications: PendingNotificationRepository


@dataclass(slots=True)
class RegistryRepositories(RepositoryCollection):
    """Repositories behind the canonical registry and the committed custody history."""

    vehicles: VehicleRepository
    drivers: DriverRepository
    transfers: CustodyTransferRepository


type LedgerUnitOfWork = UnitOfWork[LedgerRepositories]
type RegistryUnitOfWork = UnitOfWork[RegistryRepositories]

type LedgerUnitOfWorkFactory = Callable[[], LedgerUnitOfWork]
type RegistryUnitOfWorkFactory = Callable[[], RegistryUnitOfWork]
