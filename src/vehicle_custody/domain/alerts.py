"""Missing-processing alerts.

Per date the scheduler walks ``unprocessed -> alerted``. A date becomes due
once it is an alertable weekday and either lies in the past or is today with
the local clock at or after the cutoff hour. Notifications are sent first and
the ``SentAlertRecord`` is written afterwards, so a failed write can cause a
duplicate on the next tick but never a silently dropped alert. A message the
transport rejects counts as handled once it sits in the pending queue; it is
resent from there, not regenerated by later ticks.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from vehicle_custody.domain.business_days import (
    days_before,
    is_alertable_weekday,
    local_now,
    utcnow,
)
from vehicle_custody.domain.ledger import LedgerReadError
from vehicle_custody.domain.model import (
    AlertKind,
    NotificationStatus,
    PendingNotification,
    SentAlertRecord,
)
from vehicle_custody.domain.ports import DeliveryResult, Notification, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime

    from vehicle_custody.domain.business_days import Clock
    from vehicle_custody.domain.ledger import ChangeEntry, ProcessingLedger
    from vehicle_custody.domain.ports import LedgerUnitOfWorkFactory, Notifier

log = logging.getLogger(__name__)

DEFAULT_CUTOFF_HOUR = 18
SYSTEM_NAME = "Vehicle custody"


class AlertState(StrEnum):
    PROCESSED = "processed"
    NOT_DUE = "not_due"
    UNPROCESSED = "unprocessed"
    ALERTED = "alerted"


@dataclass(slots=True)
class AlertTickResult:
    checked: list[date] = field(default_factory=list["date"])
    sent: list[date] = field(default_factory=list["date"])
    queued: list[date] = field(default_factory=list["date"])
    errors: list[str] = field(default_factory=list[str])


@dataclass(slots=True)
class ResendResult:
    sent: list[PendingNotification] = field(default_factory=list[PendingNotification])
    failed: list[PendingNotification] = field(default_factory=list[PendingNotification])


# Templates ---------------------------------------------------------------


def render_daily_alert(day: date, today: date) -> tuple[str, str]:
    subject = f"ALERT: daily processing pending for {day.isoformat()}"
    body = "\n".join(
        [
            f"No custody transfers have been processed for {day.isoformat()}.",
            "",
            f"- Unprocessed date: {day.isoformat()}",
            f"- Current date: {today.isoformat()}",
            f"- System: {SYSTEM_NAME}",
            "- Action required: process the chat transcripts for this date",
            "",
            "This is an automatic message.",
        ]
    )
    return subject, body


def render_change_detected(
    day: date,
    changes: Iterable[ChangeEntry],
    detected_at: datetime,
) -> tuple[str, str]:
    subject = f"{SYSTEM_NAME}: changes detected for {day.isoformat()}"
    lines = [
        f"The transfers processed for {day.isoformat()} changed on re-processing.",
        "",
        "Changes:",
    ]
    lines.extend(f"- {change.describe()}" for change in changes)
    lines.extend(["", f"Detected at: {detected_at.isoformat(timespec='minutes')}"])
    return subject, "\n".join(lines)


# Dispatch -----------------------------------------------------------------


@dataclass(slots=True)
class NotificationDispatcher:
    """Send through the notifier and keep the at-most-once bookkeeping.

    Undeliverable messages are queued as ``PendingNotification`` for manual
    resend and then marked like delivered ones, so a date is queued once.
    """

    uow_factory: LedgerUnitOfWorkFactory
    notifier: Notifier
    clock: Clock = utcnow

    def already_sent(self, day: date, kind: AlertKind) -> bool:
        try:
            with self.uow_factory() as uow:
                return uow.repositories.sent_alerts.exists(day, kind)
        except PersistenceError:
            # a duplicate is preferable to a silent drop
            log.warning("Cannot read sent alerts for %s/%s; assuming none", day, kind.value)
            return False

    def dispatch(self, day: date, notification: Notification) -> bool:
        """Send or queue ``notification``, then mark it. Returns whether it was delivered.

        Raises ``PersistenceError`` only when an undeliverable message cannot
        be queued either; nothing is marked then, so the next tick retries.
        """

        result = self.deliver(notification)
        if not result.delivered:
            self.queue(notification, result.error)
        try:
            self.mark_sent(day, notification)
        except PersistenceError:
            log.exception(
                "%s notice for %s handled but not recorded; it may be repeated",
                notification.kind.value,
                day,
            )
        return result.delivered

    def deliver(self, notification: Notification) -> DeliveryResult:
        try:
            result = self.notifier.send(notification)
        except Exception as exc:  # noqa: BLE001
            log.warning("Notifier raised while sending %s: %s", notification.kind.value, exc)
            return DeliveryResult(delivered=False, error=str(exc) or type(exc).__name__)
        if not result.delivered:
            log.warning(
                "Notification %s to %s not delivered: %s",
                notification.kind.value,
                notification.recipient,
                result.error,
            )
        return result

    def queue(self, notification: Notification, error: str | None) -> PendingNotification:
        pending = PendingNotification(
            kind=notification.kind,
            recipient=notification.recipient,
            subject=notification.subject,
            body=notification.body,
            created_at=self.clock(),
            error=error,
            attempts=1,
        )
        with self.uow_factory() as uow:
            uow.repositories.pending_notifications.add(pending)
            uow.commit()
        log.info("Queued %s notification for manual resend", notification.kind.value)
        return pending

    def pending(self) -> list[PendingNotification]:
        with self.uow_factory() as uow:
            return uow.repositories.pending_notifications.list_pending()

    def resend_pending(self) -> ResendResult:
        """Try every queued notification again; delivered ones leave the queue."""

        result = ResendResult()
        with self.uow_factory() as uow:
            for pending in uow.repositories.pending_notifications.list_pending():
                delivery = self.deliver(
                    Notification(
                        kind=pending.kind,
                        recipient=pending.recipient,
                        subject=pending.subject,
                        body=pending.body,
                    )
                )
                pending.attempts += 1
                if delivery.delivered:
                    pending.status = NotificationStatus.SENT
                    pending.error = None
                    result.sent.append(pending)
                else:
                    pending.error = delivery.error
                    result.failed.append(pending)
            uow.commit()
        log.info(
            "Resent pending notifications: sent=%s failed=%s",
            len(result.sent),
            len(result.failed),
        )
        return result

    def mark_sent(self, day: date, notification: Notification) -> SentAlertRecord:
        marker = SentAlertRecord(
            date=day,
            alert_kind=notification.kind,
            sent_at=self.clock(),
            recipient=notification.recipient,
        )
        with self.uow_factory() as uow:
            uow.repositories.sent_alerts.add(marker)
            uow.commit()
        return marker


# Scheduler ----------------------------------------------------------------


@dataclass(slots=True)
class AlertScheduler:
    """Periodic evaluator of yesterday and today."""

    ledger: ProcessingLedger
    dispatcher: NotificationDispatcher
    recipient: str
    cutoff_hour: int = DEFAULT_CUTOFF_HOUR
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def state_for(self, day: date, *, now: datetime | None = None) -> AlertState:
        current = local_now(now or self.ledger.clock(), self.ledger.tz)
        if self._processed(day):
            return AlertState.PROCESSED
        if not self._due(day, current):
            return AlertState.NOT_DUE
        if self.dispatcher.already_sent(day, AlertKind.DAILY_PROCESSING):
            return AlertState.ALERTED
        return AlertState.UNPROCESSED

    def tick(self, *, now: datetime | None = None) -> AlertTickResult:
        """Evaluate yesterday and today; safe to call from concurrent triggers."""

        current = local_now(now or self.ledger.clock(), self.ledger.tz)
        today = current.date()
        result = AlertTickResult()
        with self._lock:
            for day in (days_before(today), today):
                result.checked.append(day)
                state = self.state_for(day, now=current)
                if state is not AlertState.UNPROCESSED:
                    log.debug("Alert state for %s: %s", day, state.value)
                    continue
                try:
                    delivered = self._fire(day, today)
                except PersistenceError as exc:
                    log.exception("Alert bookkeeping failed for %s", day)
                    result.errors.append(f"{day.isoformat()}: {exc}")
                    continue
                (result.sent if delivered else result.queued).append(day)
        log.info(
            "Alert tick at %s: checked=%s sent=%s queued=%s errors=%s",
            current.isoformat(timespec="minutes"),
            len(result.checked),
            len(result.sent),
            len(result.queued),
            len(result.errors),
        )
        return result

    def _processed(self, day: date) -> bool:
        try:
            return self.ledger.latest(day) is not None
        except LedgerReadError:
            log.warning("Ledger unreadable for %s; assuming unprocessed", day)
            return False

    def _due(self, day: date, current: datetime) -> bool:
        if not is_alertable_weekday(day, self.ledger.alert_weekdays):
            return False
        today = current.date()
        if day < today:
            return True
        return day == today and current.hour >= self.cutoff_hour

    def _fire(self, day: date, today: date) -> bool:
        subject, body = render_daily_alert(day, today)
        notification = Notification(
            kind=AlertKind.DAILY_PROCESSING,
            recipient=self.recipient,
            subject=subject,
            body=body,
        )
        delivered = self.dispatcher.dispatch(day, notification)
        if delivered:
            log.info("Sent daily processing alert for %s to %s", day, self.recipient)
        else:
            log.warning("Daily processing alert for %s queued for manual resend", day)
        return delivered
