"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC
from logging import getLogger
from typing import TYPE_CHECKING

from vehicle_custody.adapters.notifications import LoggingNotifier
from vehicle_custody.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    SqlAlchemyRegistryUnitOfWork,
    is_started,
    startup,
)
from vehicle_custody.config.errors import MissingConfigurationError
from vehicle_custody.domain.alerts import (
    AlertScheduler,
    AlertTickResult,
    NotificationDispatcher,
    render_change_detected,
)
from vehicle_custody.domain.business_days import (
    ALERTABLE_WEEKDAYS,
    days_before,
    is_alertable_weekday,
    local_today,
    utcnow,
)
from vehicle_custody.domain.context import CustodyContext
from vehicle_custody.domain.custody import CustodyBook
from vehicle_custody.domain.fingerprint import fingerprint
from vehicle_custody.domain.ledger import (
    ChangeReport,
    LedgerReadError,
    ProcessingLedger,
    ProcessingStatus,
)
from vehicle_custody.domain.model import (
    AlertKind,
    ProcessingBatch,
    Recommendation,
    SourceKind,
)
from vehicle_custody.domain.ports import Notification, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime
    from uuid import UUID

    from vehicle_custody.config.alerts import AlertConfig
    from vehicle_custody.domain.business_days import Clock
    from vehicle_custody.domain.extraction import ExtractionResult
    from vehicle_custody.domain.model import (
        CustodyTransfer,
        DailyProcessingRecord,
        RawLine,
        ReconciledTransfer,
        RegistrySnapshot,
        Role,
        TransferCandidate,
    )
    from vehicle_custody.domain.ports import (
        LedgerUnitOfWorkFactory,
        Notifier,
        RegistryUnitOfWorkFactory,
    )


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Assignment:
    """Operator choice of a registry entry for one role of one transcript line.

    ``line_ref`` is a line number, optionally prefixed by the source label as
    printed in reviews (``chat.txt:12``).
    """

    line_ref: str
    role: Role
    registry_id: UUID

    def matches(self, candidate: TransferCandidate) -> bool:
        label, _, number = self.line_ref.rpartition(":")
        if number != str(candidate.line_number):
            return False
        return not label or label == candidate.source_label


@dataclass(slots=True)
class ReviewResult:
    extraction: ExtractionResult
    transfers: list[ReconciledTransfer]
    registry: RegistrySnapshot

    @property
    def valid(self) -> list[ReconciledTransfer]:
        return [transfer for transfer in self.transfers if transfer.is_valid]

    @property
    def invalid(self) -> list[ReconciledTransfer]:
        return [transfer for transfer in self.transfers if not transfer.is_valid]


@dataclass(slots=True)
class CommitResult:
    batch: ProcessingBatch
    report: ChangeReport
    record: DailyProcessingRecord | None = None
    transfers: list[CustodyTransfer] = field(default_factory=list["CustodyTransfer"])
    change_notified: bool = False

    @property
    def recorded(self) -> bool:
        return self.record is not None


def build_context(
    *,
    alert_config: AlertConfig | None = None,
    notifier: Notifier | None = None,
    ledger_uow_factory: LedgerUnitOfWorkFactory | None = None,
    registry_uow_factory: RegistryUnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> CustodyContext:
    """Wire the collaborators once; SQLAlchemy units of work unless overridden."""

    if ledger_uow_factory is None or registry_uow_factory is None:
        if not is_started():
            startup()
    effective_ledger_uow = ledger_uow_factory or SqlAlchemyLedgerUnitOfWork
    effective_registry_uow = registry_uow_factory or SqlAlchemyRegistryUnitOfWork

    ledger = ProcessingLedger(
        uow_factory=effective_ledger_uow,
        alert_weekdays=alert_config.alert_weekdays if alert_config else ALERTABLE_WEEKDAYS,
        tz=alert_config.tzinfo if alert_config else UTC,
        clock=clock,
    )
    dispatcher = NotificationDispatcher(
        uow_factory=effective_ledger_uow,
        notifier=notifier or LoggingNotifier(),
        clock=clock,
    )
    scheduler = (
        AlertScheduler(
            ledger=ledger,
            dispatcher=dispatcher,
            recipient=alert_config.recipient,
            cutoff_hour=alert_config.cutoff_hour,
        )
        if alert_config
        else None
    )
    return CustodyContext(
        ledger=ledger,
        dispatcher=dispatcher,
        scheduler=scheduler,
        registry_uow_factory=effective_registry_uow,
        custody=CustodyBook(uow_factory=effective_registry_uow, clock=clock),
        recipient=alert_config.recipient if alert_config else None,
        notify_on_change=alert_config.notify_on_change if alert_config else False,
    )


def review_transcript(
    context: CustodyContext,
    lines: Iterable[RawLine],
    *,
    assignments: Iterable[Assignment] = (),
) -> ReviewResult:
    """Lines -> candidates -> deduplicated -> reconciled transfers, then operator overrides."""

    extraction = context.pipeline.run(lines)
    registry = context.registry_snapshot()
    summary = context.reconciler.reconcile_all(extraction.candidates, registry)
    review = ReviewResult(extraction=extraction, transfers=summary.transfers, registry=registry)
    for assignment in assignments:
        apply_assignment(context, review, assignment)
    return review


def apply_assignment(
    context: CustodyContext,
    review: ReviewResult,
    assignment: Assignment,
) -> ReconciledTransfer:
    """Override one role of the single transfer ``assignment`` points at.

    Raises ``LookupError`` when the reference matches no transfer or more than
    one, or when the id is not in the registry.
    """

    matches = [t for t in review.transfers if assignment.matches(t.candidate)]
    if len(matches) != 1:
        raise LookupError(
            f"Line reference {assignment.line_ref!r} matches {len(matches)} transfers"
        )
    return context.reconciler.override(
        matches[0], assignment.role, assignment.registry_id, review.registry
    )


def build_batch(
    day: date,
    review: ReviewResult,
    *,
    file_labels: Iterable[str] = (),
    source_kind: SourceKind = SourceKind.WHATSAPP,
) -> ProcessingBatch:
    """Only valid transfers enter the batch; unresolved ones are not committed."""

    return ProcessingBatch.from_transfers(
        date=day,
        transfers=[transfer.candidate for transfer in review.valid],
        file_labels=file_labels,
        source_kind=source_kind,
    )


def check_processing(
    context: CustodyContext,
    day: date,
    *,
    now: datetime | None = None,
) -> ProcessingStatus:
    """Ledger check that assumes "unprocessed" when the ledger cannot be read."""

    try:
        return context.ledger.check_processing(day, now=now)
    except LedgerReadError:
        log.warning("Ledger unreadable for %s; assuming unprocessed", day)
        ledger = context.ledger
        today = local_today(now or ledger.clock(), ledger.tz)
        return ProcessingStatus(
            date=day,
            processed=False,
            should_alert=is_alertable_weekday(day, ledger.alert_weekdays)
            and day <= days_before(today),
        )


def commit_batch(
    context: CustodyContext,
    day: date,
    review: ReviewResult,
    *,
    file_labels: Iterable[str] = (),
    source_kind: SourceKind = SourceKind.WHATSAPP,
    force: bool = False,
) -> CommitResult:
    """Detect changes for ``day`` and record the batch unless nothing changed.

    Recording stores the valid transfers as the day's custody history first and
    appends the ledger record last, so a failed ledger write is repaired by the
    next commit. ``force`` records even an unchanged batch. Write failures
    propagate.
    """

    batch = build_batch(day, review, file_labels=file_labels, source_kind=source_kind)
    try:
        report = context.ledger.detect_changes(day, batch)
    except LedgerReadError:
        log.warning("Ledger unreadable for %s; treating batch as unseen", day)
        report = ChangeReport(
            has_changes=True,
            is_first_processing_of_day=True,
            recommendation=Recommendation.PROCEED_CHANGES_DETECTED,
            fingerprint=fingerprint(batch),
        )

    result = CommitResult(batch=batch, report=report)
    if not report.recommendation.should_proceed and not force:
        log.info("Skipping commit for %s: %s", day, report.recommendation.value)
        return result

    result.transfers = context.custody.replace_day(day, review.valid, source_kind=source_kind)
    result.record = context.ledger.record(day, batch, digest=report.fingerprint)
    if report.has_changes and not report.is_first_processing_of_day:
        result.change_notified = _notify_change(context, day, report)
    return result


def list_transfers(context: CustodyContext, day: date) -> list[CustodyTransfer]:
    return context.custody.history(day)


def run_alert_tick(context: CustodyContext, *, now: datetime | None = None) -> AlertTickResult:
    if context.scheduler is None:
        raise MissingConfigurationError(
            "Missing configuration for: VEHICLE_CUSTODY_ALERT_RECIPIENT"
        )
    return context.scheduler.tick(now=now)


def _notify_change(context: CustodyContext, day: date, report: ChangeReport) -> bool:
    if not context.notify_on_change or not context.recipient:
        return False
    dispatcher = context.dispatcher
    if dispatcher.already_sent(day, AlertKind.CHANGE_DETECTED):
        log.debug("Change notice for %s already sent", day)
        return False
    subject, body = render_change_detected(day, report.changes, dispatcher.clock())
    notification = Notification(
        kind=AlertKind.CHANGE_DETECTED,
        recipient=context.recipient,
        subject=subject,
        body=body,
    )
    try:
        return dispatcher.dispatch(day, notification)
    except PersistenceError:
        # the ledger keeps the record regardless
        log.exception("Change notice for %s could not be sent or queued", day)
        return False
