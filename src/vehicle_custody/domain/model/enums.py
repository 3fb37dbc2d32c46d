"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceKind(StrEnum):
    """Ingestion format that produced a batch."""

    WHATSAPP = "whatsapp"
    CSV = "csv"
    MANUAL = "manual"


class Role(StrEnum):
    """Semantic role a captured token plays in a transfer statement."""

    VEHICLE = "vehicle"
    FROM_DRIVER = "from_driver"
    TO_DRIVER = "to_driver"


class AlertKind(StrEnum):
    DAILY_PROCESSING = "daily_processing"
    CHANGE_DETECTED = "change_detected"


class ChangeKind(StrEnum):
    TRANSFERS_COUNT = "transfers_count"
    FILES_PROCESSED = "files_processed"
    TRANSFERS_CONTENT = "transfers_content"


class Recommendation(StrEnum):
    PROCEED_FIRST_PROCESSING = "proceed_first_processing"
    PROCEED_CHANGES_DETECTED = "proceed_changes_detected"
    SKIP_NO_CHANGES = "skip_no_changes"

    @property
    def should_proceed(self) -> bool:
        return self is not Recommendation.SKIP_NO_CHANGES


class NotificationStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
