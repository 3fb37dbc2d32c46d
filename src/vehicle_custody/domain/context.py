"""Explicit service context handed to the application entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.extraction import ExtractionPipeline
from vehicle_custody.domain.model import RegistrySnapshot
from vehicle_custody.domain.reconciliation import Reconciler

if TYPE_CHECKING:
    from vehicle_custody.domain.alerts import AlertScheduler, NotificationDispatcher
    from vehicle_custody.domain.custody import CustodyBook
    from vehicle_custody.domain.ledger import ProcessingLedger
    from vehicle_custody.domain.ports import RegistryUnitOfWorkFactory


@dataclass(slots=True)
class CustodyContext:
    """Collaborators constructed once by the host and passed into each call."""

    ledger: ProcessingLedger
    dispatcher: NotificationDispatcher
    registry_uow_factory: RegistryUnitOfWorkFactory
    custody: CustodyBook
    scheduler: AlertScheduler | None = None
    pipeline: ExtractionPipeline = field(default_factory=ExtractionPipeline)
    reconciler: Reconciler = field(default_factory=Reconciler)
    recipient: str | None = None
    notify_on_change: bool = False

    def registry_snapshot(self) -> RegistrySnapshot:
        with self.registry_uow_factory() as uow:
            return RegistrySnapshot.of(
                vehicles=uow.repositories.vehicles.list_all(),
                drivers=uow.repositories.drivers.list_all(),
            )
