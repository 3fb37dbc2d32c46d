"""SQLAlchemy adapter package for the custody ledger and registry."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCustodyTransferRepository,
    SqlAlchemyDriverRepository,
    SqlAlchemyPendingNotificationRepository,
    SqlAlchemyProcessingRecordRepository,
    SqlAlchemySentAlertRepository,
    SqlAlchemyVehicleRepository,
)
from .unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    SqlAlchemyRegistryUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCustodyTransferRepository",
    "SqlAlchemyDriverRepository",
    "SqlAlchemyLedgerUnitOfWork",
    "SqlAlchemyPendingNotificationRepository",
    "SqlAlchemyProcessingRecordRepository",
    "SqlAlchemyRegistryUnitOfWork",
    "SqlAlchemySentAlertRepository",
    "SqlAlchemyVehicleRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "startup",
]
