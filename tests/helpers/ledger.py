"""In-memory fakes for the ledger, registry and notification ports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal

from vehicle_custody.domain.model import NotificationStatus
from vehicle_custody.domain.ports import DeliveryResult, PersistenceError

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from vehicle_custody.domain.model import (
        AlertKind,
        CanonicalDriver,
        CanonicalVehicle,
        CustodyTransfer,
        DailyProcessingRecord,
        PendingNotification,
        SentAlertRecord,
    )
    from vehicle_custody.domain.ports import Notification


@dataclass(slots=True)
class FailureSwitch:
    """Flip to make repositories raise ``PersistenceError``."""

    reads: bool = False
    writes: bool = False

    def check_read(self) -> None:
        if self.reads:
            raise PersistenceError("read failure")

    def check_write(self) -> None:
        if self.writes:
            raise PersistenceError("write failure")


class FakeProcessingRecordRepository:
    def __init__(self, failures: FailureSwitch) -> None:
        self.items: list[DailyProcessingRecord] = []
        self.failures = failures

    def add(self, entity: DailyProcessingRecord) -> None:
        self.failures.check_write()
        self.items.append(entity)

    def latest_for(self, day: date) -> DailyProcessingRecord | None:
        self.failures.check_read()
        matches = [(record.recorded_at, index, record) for index, record in self._indexed(day)]
        if not matches:
            return None
        return max(matches, key=lambda item: (item[0], item[1]))[2]

    def list_for(self, day: date) -> list[DailyProcessingRecord]:
        self.failures.check_read()
        return [record for _, record in self._indexed(day)]

    def _indexed(self, day: date) -> list[tuple[int, DailyProcessingRecord]]:
        return [(index, record) for index, record in enumerate(self.items) if record.date == day]


class FakeSentAlertRepository:
    def __init__(self, failures: FailureSwitch) -> None:
        self.items: list[SentAlertRecord] = []
        self.failures = failures
        self.fail_adds = False

    def add(self, entity: SentAlertRecord) -> None:
        self.failures.check_write()
        if self.fail_adds:
            raise PersistenceError("sent alert write failure")
        self.items.append(entity)

    def exists(self, day: date, kind: AlertKind) -> bool:
        self.failures.check_read()
        return any(item.date == day and item.alert_kind == kind for item in self.items)


class FakePendingNotificationRepository:
    def __init__(self, failures: FailureSwitch) -> None:
        self.items: list[PendingNotification] = []
        self.failures = failures

    def add(self, entity: PendingNotification) -> None:
        self.failures.check_write()
        self.items.append(entity)

    def list_pending(self) -> list[PendingNotification]:
        self.failures.check_read()
        return [item for item in self.items if item.status is NotificationStatus.PENDING]


@dataclass(slots=True)
class FakeLedgerRepositories:
    processing_records: FakeProcessingRecordRepository
    sent_alerts: FakeSentAlertRepository
    pending_notifications: FakePendingNotificationRepository


class FakeLedgerStore:
    """Shared state behind every unit of work the factory hands out."""

    def __init__(self) -> None:
        self.failures = FailureSwitch()
        self.repositories = FakeLedgerRepositories(
            processing_records=FakeProcessingRecordRepository(self.failures),
            sent_alerts=FakeSentAlertRepository(self.failures),
            pending_notifications=FakePendingNotificationRepository(self.failures),
        )
        self.commits = 0

    def __call__(self) -> FakeUnitOfWork[FakeLedgerRepositories]:
        return FakeUnitOfWork(self.repositories, on_commit=self._committed)

    def _committed(self) -> None:
        self.commits += 1

    @property
    def records(self) -> list[DailyProcessingRecord]:
        return self.repositories.processing_records.items

    @property
    def sent_alerts(self) -> list[SentAlertRecord]:
        return self.repositories.sent_alerts.items

    @property
    def pending(self) -> list[PendingNotification]:
        return self.repositories.pending_notifications.items


class FakeVehicleRepository:
    def __init__(self, items: list[CanonicalVehicle] | None = None) -> None:
        self.items: list[CanonicalVehicle] = list(items or [])

    def add(self, entity: CanonicalVehicle) -> None:
        self.items.append(entity)

    def get(self, vehicle_id: UUID) -> CanonicalVehicle | None:
        return next((item for item in self.items if item.id == vehicle_id), None)

    def list_all(self) -> list[CanonicalVehicle]:
        return sorted(self.items, key=lambda item: item.plate)

    def get_by_plate(self, plate: str) -> CanonicalVehicle | None:
        return next((item for item in self.items if item.plate == plate), None)


class FakeDriverRepository:
    def __init__(self, items: list[CanonicalDriver] | None = None) -> None:
        self.items: list[CanonicalDriver] = list(items or [])

    def add(self, entity: CanonicalDriver) -> None:
        self.items.append(entity)

    def list_all(self) -> list[CanonicalDriver]:
        return sorted(self.items, key=lambda item: item.name)

    def get_by_name(self, name: str) -> CanonicalDriver | None:
        wanted = name.strip().lower()
        return next((item for item in self.items if item.name.lower() == wanted), None)


class FakeCustodyTransferRepository:
    def __init__(self, failures: FailureSwitch) -> None:
        self.items: list[CustodyTransfer] = []
        self.failures = failures

    def add(self, entity: CustodyTransfer) -> None:
        self.failures.check_write()
        self.items.append(entity)

    def list_for(self, day: date) -> list[CustodyTransfer]:
        self.failures.check_read()
        return [item for item in self.items if item.date == day]

    def remove_for(self, day: date) -> set[UUID]:
        self.failures.check_write()
        removed = {item.vehicle_id for item in self.items if item.date == day}
        self.items = [item for item in self.items if item.date != day]
        return removed

    def latest_for_vehicle(self, vehicle_id: UUID) -> CustodyTransfer | None:
        self.failures.check_read()
        matches = [
            (item.date, index, item)
            for index, item in enumerate(self.items)
            if item.vehicle_id == vehicle_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda match: (match[0], match[1]))[2]


@dataclass(slots=True)
class FakeRegistryRepositories:
    vehicles: FakeVehicleRepository
    drivers: FakeDriverRepository
    transfers: FakeCustodyTransferRepository


class FakeRegistryStore:
    def __init__(
        self,
        *,
        vehicles: list[CanonicalVehicle] | None = None,
        drivers: list[CanonicalDriver] | None = None,
    ) -> None:
        self.failures = FailureSwitch()
        self.repositories = FakeRegistryRepositories(
            vehicles=FakeVehicleRepository(vehicles),
            drivers=FakeDriverRepository(drivers),
            transfers=FakeCustodyTransferRepository(self.failures),
        )

    def __call__(self) -> FakeUnitOfWork[FakeRegistryRepositories]:
        return FakeUnitOfWork(self.repositories)

    @property
    def transfers(self) -> list[CustodyTransfer]:
        return self.repositories.transfers.items


class FakeUnitOfWork[TRepositories]:
    """Unit of work over shared in-memory repositories."""

    def __init__(self, repositories: TRepositories, *, on_commit: object = None) -> None:
        self.repositories = repositories
        self._on_commit = on_commit
        self.committed = False
        self.rollback_called = False

    def __enter__(self) -> FakeUnitOfWork[TRepositories]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True
        if callable(self._on_commit):
            self._on_commit()

    def rollback(self) -> None:
        self.rollback_called = True


@dataclass(slots=True)
class FakeNotifier:
    """Records notifications; can be told to fail or raise."""

    sent: list[Notification] = field(default_factory=list["Notification"])
    fail_with: str | None = None
    raise_error: Exception | None = None

    def send(self, notification: Notification) -> DeliveryResult:
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with is not None:
            return DeliveryResult(delivered=False, error=self.fail_with)
        self.sent.append(notification)
        return DeliveryResult(delivered=True)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 3, 13, 10, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


if TYPE_CHECKING:
    from vehicle_custody.domain.ports import LedgerUnitOfWorkFactory, Notifier

    _ledger_check: LedgerUnitOfWorkFactory = FakeLedgerStore()
    _notifier_check: Notifier = FakeNotifier()
