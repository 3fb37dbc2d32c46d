"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from vehicle_custody.adapters.sqlalchemy.mappings import (
    custody_transfer_table,
    daily_processing_table,
    driver_table,
    pending_notification_table,
    sent_alert_table,
    vehicle_table,
)
from vehicle_custody.domain.model import (
    CanonicalDriver,
    CanonicalVehicle,
    CustodyTransfer,
    DailyProcessingRecord,
    NotificationStatus,
    PendingNotification,
    SentAlertRecord,
)

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from sqlalchemy.orm import Session

    from vehicle_custody.domain.model import AlertKind


class SqlAlchemyProcessingRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: DailyProcessingRecord) -> None:
        self.session.add(entity)

    def latest_for(self, day: date) -> DailyProcessingRecord | None:
        stmt = (
            select(DailyProcessingRecord)
            .where(daily_processing_table.c.date == day)
            .order_by(
                daily_processing_table.c.recorded_at.desc(),
                daily_processing_table.c.seq.desc(),
            )
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for(self, day: date) -> list[DailyProcessingRecord]:
        stmt = (
            select(DailyProcessingRecord)
            .where(daily_processing_table.c.date == day)
            .order_by(daily_processing_table.c.recorded_at, daily_processing_table.c.seq)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySentAlertRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SentAlertRecord) -> None:
        self.session.add(entity)

    def exists(self, day: date, kind: AlertKind) -> bool:
        stmt = (
            select(sent_alert_table.c.id)
            .where(sent_alert_table.c.date == day)
            .where(sent_alert_table.c.alert_kind == kind)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None


class SqlAlchemyPendingNotificationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: PendingNotification) -> None:
        self.session.add(entity)

    def list_pending(self) -> list[PendingNotification]:
        stmt = (
            select(PendingNotification)
            .where(pending_notification_table.c.status == NotificationStatus.PENDING)
            .order_by(pending_notification_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyVehicleRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CanonicalVehicle) -> None:
        self.session.add(entity)

    def get(self, vehicle_id: UUID) -> CanonicalVehicle | None:
        return self.session.get(CanonicalVehicle, vehicle_id)

    def list_all(self) -> list[CanonicalVehicle]:
        stmt = select(CanonicalVehicle).order_by(vehicle_table.c.plate)
        return list(self.session.execute(stmt).scalars())

    def get_by_plate(self, plate: str) -> CanonicalVehicle | None:
        stmt = select(CanonicalVehicle).where(vehicle_table.c.plate == plate).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyDriverRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CanonicalDriver) -> None:
        self.session.add(entity)

    def list_all(self) -> list[CanonicalDriver]:
        stmt = select(CanonicalDriver).order_by(driver_table.c.name)
        return list(self.session.execute(stmt).scalars())

    def get_by_name(self, name: str) -> CanonicalDriver | None:
        stmt = (
            select(CanonicalDriver)
            .where(func.lower(driver_table.c.name) == name.strip().lower())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyCustodyTransferRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CustodyTransfer) -> None:
        self.session.add(entity)

    def list_for(self, day: date) -> list[CustodyTransfer]:
        stmt = (
            select(CustodyTransfer)
            .where(custody_transfer_table.c.date == day)
            .order_by(custody_transfer_table.c.seq)
        )
        return list(self.session.execute(stmt).scalars())

    def remove_for(self, day: date) -> set[UUID]:
        touched = select(custody_transfer_table.c.vehicle_id).where(
            custody_transfer_table.c.date == day
        )
        vehicle_ids = set(self.session.execute(touched).scalars())
        self.session.execute(
            delete(custody_transfer_table).where(custody_transfer_table.c.date == day)
        )
        return vehicle_ids

    def latest_for_vehicle(self, vehicle_id: UUID) -> CustodyTransfer | None:
        stmt = (
            select(CustodyTransfer)
            .where(custody_transfer_table.c.vehicle_id == vehicle_id)
            .order_by(
                custody_transfer_table.c.date.desc(),
                custody_transfer_table.c.seq.desc(),
            )
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()
