"""SQLAlchemy mapping metadata for the custody domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from vehicle_custody.domain.model import (
    AlertKind,
    CanonicalDriver,
    CanonicalVehicle,
    CustodyTransfer,
    DailyProcessingRecord,
    NotificationStatus,
    PendingNotification,
    SentAlertRecord,
    SourceKind,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class LabelListType(TypeDecorator[list[str]]):
    """File labels stored as a sorted JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        return [item for item in cast(list[Any], loaded) if isinstance(item, str)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Registry tables --------------------------------------------------------------

vehicle_table = Table(
    "vehicle",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("plate", String(32), nullable=False, unique=True),
    Column("current_driver_id", UUIDColumnType, ForeignKey("driver.id"), nullable=True),
)

driver_table = Table(
    "driver",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
)

# ``transferred_at`` keeps the naive wall-clock time read from the chat
custody_transfer_table = Table(
    "custody_transfer",
    mapper_registry.metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", UUIDColumnType, nullable=False, unique=True, default=uuid.uuid4),
    Column("date", Date, nullable=False, index=True),
    Column("vehicle_id", UUIDColumnType, ForeignKey("vehicle.id"), nullable=False, index=True),
    Column("to_driver_id", UUIDColumnType, ForeignKey("driver.id"), nullable=False),
    Column("from_driver_id", UUIDColumnType, ForeignKey("driver.id"), nullable=True),
    Column("transferred_at", DateTime(timezone=False), nullable=True),
    Column("extracted_text", Text, nullable=False),
    Column("source_kind", Enum(SourceKind, native_enum=False), nullable=False),
    Column("source_label", String, nullable=False, default=""),
    Column("line_number", Integer, nullable=False, default=0),
    Column("recorded_at", UTCDateTime(), nullable=False),
)

# Ledger tables ----------------------------------------------------------------

# ``seq`` breaks ties between records sharing a ``recorded_at``
daily_processing_table = Table(
    "daily_processing",
    mapper_registry.metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", UUIDColumnType, nullable=False, unique=True, default=uuid.uuid4),
    Column("date", Date, nullable=False),
    Column("recorded_at", UTCDateTime(), nullable=False),
    Column("transfers_processed", Integer, nullable=False),
    Column("file_labels", LabelListType(), nullable=False),
    Column("fingerprint", String(96), nullable=False),
    Column("source_kind", Enum(SourceKind, native_enum=False), nullable=False),
    Index("ix_daily_processing_date_recorded_at", "date", "recorded_at"),
)

sent_alert_table = Table(
    "sent_alert",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("date", Date, nullable=False),
    Column("alert_kind", Enum(AlertKind, native_enum=False), nullable=False),
    Column("sent_at", UTCDateTime(), nullable=False),
    Column("recipient", String, nullable=True),
    UniqueConstraint("date", "alert_kind", name="uq_sent_alert_date_kind"),
)

pending_notification_table = Table(
    "pending_notification",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("kind", Enum(AlertKind, native_enum=False), nullable=False),
    Column("recipient", String, nullable=False),
    Column("subject", String, nullable=False),
    Column("body", Text, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("error", Text, nullable=True),
    Column("status", Enum(NotificationStatus, native_enum=False), nullable=False),
    Column("attempts", Integer, nullable=False, default=0),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CanonicalVehicle, vehicle_table)
    mapper_registry.map_imperatively(CanonicalDriver, driver_table)
    mapper_registry.map_imperatively(
        CustodyTransfer,
        custody_transfer_table,
        primary_key=[custody_transfer_table.c.id],
        exclude_properties=["seq"],
    )
    mapper_registry.map_imperatively(
        DailyProcessingRecord,
        daily_processing_table,
        primary_key=[daily_processing_table.c.id],
        exclude_properties=["seq"],
    )
    mapper_registry.map_imperatively(SentAlertRecord, sent_alert_table)
    mapper_registry.map_imperatively(PendingNotification, pending_notification_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
