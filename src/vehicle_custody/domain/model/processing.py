"""Processing batches and the append-only records written about them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.model.entity import Entity
from vehicle_custody.domain.model.enums import (
    AlertKind,
    NotificationStatus,
    SourceKind,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime

    from vehicle_custody.domain.model.transfers import TransferCandidate


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessingBatch:
    """The logical unit digested by the fingerprint engine.

    ``transfers_count`` is declared by the submitter and deliberately not
    re-derived from ``transfers``.
    """

    date: date
    transfers_count: int
    file_labels: frozenset[str] = frozenset()
    source_kind: SourceKind = SourceKind.WHATSAPP
    transfers: tuple[TransferCandidate, ...] = ()

    def __post_init__(self) -> None:
        if self.transfers_count < 0:
            raise ValueError(f"Invalid transfers count: {self.transfers_count}")

    @classmethod
    def from_transfers(
        cls,
        *,
        date: date,
        transfers: Iterable[TransferCandidate],
        file_labels: Iterable[str] = (),
        source_kind: SourceKind = SourceKind.WHATSAPP,
    ) -> ProcessingBatch:
        items = tuple(transfers)
        return cls(
            date=date,
            transfers_count=len(items),
            file_labels=frozenset(file_labels),
            source_kind=source_kind,
            transfers=items,
        )


@dataclass(eq=False, kw_only=True)
class DailyProcessingRecord(Entity):
    """Ledger entry for one submitted batch; never updated after insert."""

    date: date
    recorded_at: datetime
    transfers_processed: int
    file_labels: list[str] = field(default_factory=list[str])
    fingerprint: str
    source_kind: SourceKind = SourceKind.WHATSAPP


@dataclass(eq=False, kw_only=True)
class SentAlertRecord(Entity):
    """Idempotency marker: at most one per ``(date, alert_kind)``."""

    date: date
    alert_kind: AlertKind
    sent_at: datetime
    recipient: str | None = None


@dataclass(eq=False, kw_only=True)
class PendingNotification(Entity):
    """A notification the transport could not deliver, kept for manual resend."""

    kind: AlertKind
    recipient: str
    subject: str
    body: str
    created_at: datetime
    error: str | None = None
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = 0
