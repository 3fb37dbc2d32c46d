"""Domain port definitions for adapters."""

from __future__ import annotations

from .notification import DeliveryResult, Notification, Notifier
from .persistence import (
    CustodyTransferRepository,
    DriverRepository,
    PendingNotificationRepository,
    ProcessingRecordRepository,
    PersistenceError,
    Repository,
    SentAlertRepository,
    VehicleRepository,
)
from .unit_of_work import (
    LedgerRepositories,
    LedgerUnitOfWork,
    LedgerUnitOfWorkFactory,
    RegistryRepositories,
    RegistryUnitOfWork,
    RegistryUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CustodyTransferRepository",
    "DeliveryResult",
    "DriverRepository",
    "LedgerRepositories",
    "LedgerUnitOfWork",
    "LedgerUnitOfWorkFactory",
    "Notification",
    "Notifier",
    "PendingNotificationRepository",
    "PersistenceError",
    "ProcessingRecordRepository",
    "RegistryRepositories",
    "RegistryUnitOfWork",
    "RegistryUnitOfWorkFactory",
    "Repository",
    "RepositoryCollection",
    "SentAlertRepository",
    "UnitOfWork",
    "VehicleRepository",
]
