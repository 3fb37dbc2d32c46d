"""Daily processing ledger.

Append-only: every submitted batch becomes a new ``DailyProcessingRecord``.
The most recent record for a date (by ``recorded_at``) is authoritative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC
from typing import TYPE_CHECKING

from vehicle_custody.domain.business_days import (
    ALERTABLE_WEEKDAYS,
    days_before,
    is_alertable_weekday,
    local_today,
    utcnow,
)
from vehicle_custody.domain.extraction.normalize import normalize_token
from vehicle_custody.domain.fingerprint import fingerprint
from vehicle_custody.domain.model import (
    ChangeKind,
    DailyProcessingRecord,
    Recommendation,
)
from vehicle_custody.domain.ports import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime, tzinfo

    from vehicle_custody.domain.business_days import Clock
    from vehicle_custody.domain.model import ProcessingBatch
    from vehicle_custody.domain.ports import LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)


class LedgerError(RuntimeError):
    """Base error for ledger persistence failures."""


class LedgerReadError(LedgerError):
    """The ledger could not be queried."""


class LedgerWriteError(LedgerError):
    """A processing record could not be appended."""


@dataclass(frozen=True, slots=True)
class ProcessingStatus:
    date: date
    processed: bool
    should_alert: bool
    last_record: DailyProcessingRecord | None = None


@dataclass(frozen=True, slots=True)
class ChangeEntry:
    """One field-level difference between the stored and the incoming batch."""

    kind: ChangeKind
    previous: int | None = None
    current: int | None = None
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def delta(self) -> int | None:
        if self.previous is None or self.current is None:
            return None
        return self.current - self.previous

    def describe(self) -> str:
        if self.kind is ChangeKind.TRANSFERS_COUNT:
            return f"transfers: {self.previous} -> {self.current} ({self.delta:+d})"
        if self.kind is ChangeKind.FILES_PROCESSED:
            parts: list[str] = []
            if self.added:
                parts.append("added " + ", ".join(self.added))
            if self.removed:
                parts.append("removed " + ", ".join(self.removed))
            return "files: " + "; ".join(parts)
        return "transfer content changed"


@dataclass(frozen=True, slots=True)
class ChangeReport:
    has_changes: bool
    is_first_processing_of_day: bool
    recommendation: Recommendation
    fingerprint: str
    changes: tuple[ChangeEntry, ...] = ()
    previous_record: DailyProcessingRecord | None = None


@dataclass(slots=True)
class ProcessingLedger:
    """Query and append processing records through a unit of work."""

    uow_factory: LedgerUnitOfWorkFactory
    alert_weekdays: frozenset[int] = field(default_factory=lambda: ALERTABLE_WEEKDAYS)
    tz: tzinfo = UTC
    clock: Clock = utcnow

    def latest(self, day: date) -> DailyProcessingRecord | None:
        try:
            with self.uow_factory() as uow:
                return uow.repositories.processing_records.latest_for(day)
        except PersistenceError as exc:
            raise LedgerReadError(f"Cannot read processing records for {day}") from exc

    def history(self, day: date) -> list[DailyProcessingRecord]:
        try:
            with self.uow_factory() as uow:
                return uow.repositories.processing_records.list_for(day)
        except PersistenceError as exc:
            raise LedgerReadError(f"Cannot read processing records for {day}") from exc

    def check_processing(self, day: date, *, now: datetime | None = None) -> ProcessingStatus:
        """Report whether ``day`` was processed and whether its absence warrants an alert.

        Today is never flagged here; same-day alerts belong to the scheduler's
        cutoff logic.
        """

        record = self.latest(day)
        today = local_today(now or self.clock(), self.tz)
        should_alert = (
            record is None
            and is_alertable_weekday(day, self.alert_weekdays)
            and day <= days_before(today)
        )
        log.debug(
            "Processing check for %s: processed=%s should_alert=%s",
            day,
            record is not None,
            should_alert,
        )
        return ProcessingStatus(
            date=day,
            processed=record is not None,
            should_alert=should_alert,
            last_record=record,
        )

    def detect_changes(self, day: date, batch: ProcessingBatch) -> ChangeReport:
        current = fingerprint(batch)
        previous = self.latest(day)
        if previous is None:
            log.info("First processing of %s", day)
            return ChangeReport(
                has_changes=True,
                is_first_processing_of_day=True,
                recommendation=Recommendation.PROCEED_FIRST_PROCESSING,
                fingerprint=current,
            )

        if previous.fingerprint == current:
            log.info("No changes for %s since %s", day, previous.recorded_at.isoformat())
            return ChangeReport(
                has_changes=False,
                is_first_processing_of_day=False,
                recommendation=Recommendation.SKIP_NO_CHANGES,
                fingerprint=current,
                previous_record=previous,
            )

        changes = diff_batch(previous, batch)
        log.info(
            "Changes detected for %s: %s",
            day,
            "; ".join(change.describe() for change in changes),
        )
        return ChangeReport(
            has_changes=True,
            is_first_processing_of_day=False,
            recommendation=Recommendation.PROCEED_CHANGES_DETECTED,
            fingerprint=current,
            changes=changes,
            previous_record=previous,
        )

    def record(
        self,
        day: date,
        batch: ProcessingBatch,
        *,
        digest: str | None = None,
    ) -> DailyProcessingRecord:
        """Append a record for ``batch``. Failures propagate as ``LedgerWriteError``."""

        entry = DailyProcessingRecord(
            date=day,
            recorded_at=self.clock().astimezone(UTC),
            transfers_processed=batch.transfers_count,
            file_labels=sorted(batch.file_labels),
            fingerprint=digest or fingerprint(batch),
            source_kind=batch.source_kind,
        )
        try:
            with self.uow_factory() as uow:
                uow.repositories.processing_records.add(entry)
                uow.commit()
        except PersistenceError as exc:
            raise LedgerWriteError(f"Cannot record processing for {day}") from exc
        log.info(
            "Recorded processing for %s: %s transfers, %s files",
            day,
            entry.transfers_processed,
            len(entry.file_labels),
        )
        return entry


def diff_batch(
    previous: DailyProcessingRecord,
    batch: ProcessingBatch,
) -> tuple[ChangeEntry, ...]:
    changes: list[ChangeEntry] = []
    if previous.transfers_processed != batch.transfers_count:
        changes.append(
            ChangeEntry(
                kind=ChangeKind.TRANSFERS_COUNT,
                previous=previous.transfers_processed,
                current=batch.transfers_count,
            )
        )

    before = _label_set(previous.file_labels)
    after = _label_set(batch.file_labels)
    if before != after:
        changes.append(
            ChangeEntry(
                kind=ChangeKind.FILES_PROCESSED,
                previous=len(before),
                current=len(after),
                added=tuple(sorted(after - before)),
                removed=tuple(sorted(before - after)),
            )
        )

    if not changes:
        changes.append(ChangeEntry(kind=ChangeKind.TRANSFERS_CONTENT))
    return tuple(changes)


def _label_set(labels: Iterable[str]) -> set[str]:
    return {label for label in map(normalize_token, labels) if label}
