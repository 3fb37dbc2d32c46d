"""Public domain model surface."""

from __future__ import annotations

from vehicle_custody.domain.model.custody import CustodyTransfer
from vehicle_custody.domain.model.entity import Entity, new_id
from vehicle_custody.domain.model.enums import (
    AlertKind,
    ChangeKind,
    NotificationStatus,
    Recommendation,
    Role,
    SourceKind,
)
from vehicle_custody.domain.model.processing import (
    DailyProcessingRecord,
    PendingNotification,
    ProcessingBatch,
    SentAlertRecord,
)
from vehicle_custody.domain.model.registry import (
    CanonicalDriver,
    CanonicalVehicle,
    RegistrySnapshot,
)
from vehicle_custody.domain.model.transfers import (
    RawLine,
    ReconciledTransfer,
    Suggestions,
    TransferCandidate,
)

__all__ = [
    "AlertKind",
    "CanonicalDriver",
    "CanonicalVehicle",
    "ChangeKind",
    "CustodyTransfer",
    "DailyProcessingRecord",
    "Entity",
    "NotificationStatus",
    "PendingNotification",
    "ProcessingBatch",
    "RawLine",
    "Recommendation",
    "ReconciledTransfer",
    "RegistrySnapshot",
    "Role",
    "SentAlertRecord",
    "SourceKind",
    "Suggestions",
    "TransferCandidate",
    "new_id",
]
