from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from datetime import UTC, date, datetime

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from vehicle_custody.adapters.sqlalchemy import (
    SqlAlchemyLedgerUnitOfWork,
    SqlAlchemyRegistryUnitOfWork,
    StartupError,
    shutdown,
    startup,
)
from vehicle_custody.adapters.sqlalchemy.unit_of_work import configured_engine, is_started
from vehicle_custody.domain.model import AlertKind, CanonicalVehicle, SentAlertRecord
from vehicle_custody.domain.ports import PersistenceError

DAY = date(2024, 3, 12)


def _marker() -> SentAlertRecord:
    return SentAlertRecord(
        date=DAY,
        alert_kind=AlertKind.DAILY_PROCESSING,
        sent_at=datetime(2024, 3, 13, 9, 0, tzinfo=UTC),
    )


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyLedgerUnitOfWork()


def test_startup_refuses_double_initialisation(sqlite_started: Engine) -> None:
    assert is_started()
    assert configured_engine() is sqlite_started

    with pytest.raises(StartupError):
        startup(engine=sqlite_started)


def test_repositories_unavailable_outside_context(
    ledger_unit_of_work: Callable[[], SqlAlchemyLedgerUnitOfWork],
) -> None:
    uow = ledger_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_commit_persists_across_units(
    registry_unit_of_work: Callable[[], SqlAlchemyRegistryUnitOfWork],
) -> None:
    with registry_unit_of_work() as uow:
        uow.repositories.vehicles.add(CanonicalVehicle(plate="ABC-123"))
        uow.commit()

    with registry_unit_of_work() as uow:
        assert [v.plate for v in uow.repositories.vehicles.list_all()] == ["ABC-123"]


def test_uncommitted_changes_are_discarded(
    registry_unit_of_work: Callable[[], SqlAlchemyRegistryUnitOfWork],
) -> None:
    with registry_unit_of_work() as uow:
        uow.repositories.vehicles.add(CanonicalVehicle(plate="ABC-123"))

    with registry_unit_of_work() as uow:
        assert uow.repositories.vehicles.list_all() == []


def test_rollback_on_domain_error(
    registry_unit_of_work: Callable[[], SqlAlchemyRegistryUnitOfWork],
) -> None:
    with pytest.raises(ValueError, match="boom"), registry_unit_of_work() as uow:
        uow.repositories.vehicles.add(CanonicalVehicle(plate="ABC-123"))
        uow.session.flush()
        raise ValueError("boom")

    with registry_unit_of_work() as uow:
        assert uow.repositories.vehicles.list_all() == []


def test_duplicate_sent_alert_surfaces_as_persistence_error(
    ledger_unit_of_work: Callable[[], SqlAlchemyLedgerUnitOfWork],
) -> None:
    with ledger_unit_of_work() as uow:
        uow.repositories.sent_alerts.add(_marker())
        uow.commit()

    with pytest.raises(PersistenceError), ledger_unit_of_work() as uow:
        uow.repositories.sent_alerts.add(_marker())
        uow.commit()

    with ledger_unit_of_work() as uow:
        assert uow.repositories.sent_alerts.exists(DAY, AlertKind.DAILY_PROCESSING)
