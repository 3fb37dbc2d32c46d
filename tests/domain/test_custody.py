from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from tests.helpers.ledger import FakeRegistryStore, FrozenClock
from tests.helpers.transfers import make_candidate, make_registry
from vehicle_custody.domain.custody import CustodyBook, CustodyReadError, CustodyWriteError
from vehicle_custody.domain.model import (
    CanonicalDriver,
    CanonicalVehicle,
    ReconciledTransfer,
    RegistrySnapshot,
    SourceKind,
)
from vehicle_custody.domain.reconciliation import Reconciler

TUESDAY = date(2024, 3, 12)
WEDNESDAY = date(2024, 3, 13)


@pytest.fixture
def registry() -> RegistrySnapshot:
    return make_registry()


@pytest.fixture
def store(registry: RegistrySnapshot) -> FakeRegistryStore:
    return FakeRegistryStore(vehicles=list(registry.vehicles), drivers=list(registry.drivers))


@pytest.fixture
def book(store: FakeRegistryStore) -> CustodyBook:
    return CustodyBook(uow_factory=store, clock=FrozenClock())


def _transfer(
    registry: RegistrySnapshot,
    vehicle: str,
    driver: str,
    *,
    hour: int | None = None,
    line_number: int = 1,
) -> ReconciledTransfer:
    candidate = make_candidate(
        vehicle,
        driver,
        timestamp=datetime(2024, 3, 12, hour, 0) if hour is not None else None,
        line_number=line_number,
    )
    return Reconciler().reconcile(candidate, registry)


def _vehicle(registry: RegistrySnapshot, plate: str) -> CanonicalVehicle:
    return next(vehicle for vehicle in registry.vehicles if vehicle.plate == plate)


def _driver(registry: RegistrySnapshot, name: str) -> CanonicalDriver:
    return next(driver for driver in registry.drivers if driver.name == name)


def test_replace_day_stores_valid_transfers_and_sets_holder(
    book: CustodyBook, store: FakeRegistryStore, registry: RegistrySnapshot
) -> None:
    valid = _transfer(registry, "ABC-123", "Juan Perez", hour=9)
    unresolved = _transfer(registry, "XYZ-999", "Luis", line_number=2)

    stored = book.replace_day(TUESDAY, [valid, unresolved], source_kind=SourceKind.CSV)

    assert len(stored) == 1
    entry = stored[0]
    assert entry.date == TUESDAY
    assert entry.vehicle_id == _vehicle(registry, "ABC-123").id
    assert entry.to_driver_id == _driver(registry, "Juan Perez").id
    assert entry.from_driver_id is None
    assert entry.transferred_at == datetime(2024, 3, 12, 9, 0)
    assert entry.extracted_text == "le paso el carro ABC-123 a Juan Perez"
    assert entry.source_kind is SourceKind.CSV
    assert entry.recorded_at == datetime(2024, 3, 13, 10, 0, tzinfo=UTC)
    assert store.transfers == stored
    assert _vehicle(registry, "ABC-123").current_driver_id == _driver(registry, "Juan Perez").id


def test_replacing_a_day_does_not_duplicate_history(
    book: CustodyBook, store: FakeRegistryStore, registry: RegistrySnapshot
) -> None:
    transfer = _transfer(registry, "ABC-123", "Juan Perez")

    book.replace_day(TUESDAY, [transfer])
    book.replace_day(TUESDAY, [transfer])

    assert len(book.history(TUESDAY)) == 1

    book.replace_day(TUESDAY, [])

    assert store.transfers == []
    assert _vehicle(registry, "ABC-123").current_driver_id is None


def test_latest_time_within_a_day_sets_holder(
    book: CustodyBook, registry: RegistrySnapshot
) -> None:
    evening = _transfer(registry, "ABC-123", "Maria Lopez", hour=17, line_number=1)
    morning = _transfer(registry, "ABC-123", "Juan Perez", hour=9, line_number=2)

    stored = book.replace_day(TUESDAY, [evening, morning])

    assert [entry.line_number for entry in stored] == [2, 1]
    assert _vehicle(registry, "ABC-123").current_driver_id == _driver(registry, "Maria Lopez").id


def test_reprocessing_an_older_day_keeps_newer_holder(
    book: CustodyBook, registry: RegistrySnapshot
) -> None:
    book.replace_day(WEDNESDAY, [_transfer(registry, "ABC-123", "Pedro Gomez")])
    book.replace_day(TUESDAY, [_transfer(registry, "ABC-123", "Juan Perez")])

    assert _vehicle(registry, "ABC-123").current_driver_id == _driver(registry, "Pedro Gomez").id


def test_from_driver_is_stored_when_resolved(
    book: CustodyBook, registry: RegistrySnapshot
) -> None:
    candidate = make_candidate("DEF-789", "Pedro", from_driver="Juan", pattern_id="HANDOVER")
    transfer = Reconciler().reconcile(candidate, registry)

    stored = book.replace_day(TUESDAY, [transfer])

    assert stored[0].from_driver_id == _driver(registry, "Juan Perez").id
    assert stored[0].to_driver_id == _driver(registry, "Pedro Gomez").id


def test_write_failure_raises(
    book: CustodyBook, store: FakeRegistryStore, registry: RegistrySnapshot
) -> None:
    store.failures.writes = True

    with pytest.raises(CustodyWriteError):
        book.replace_day(TUESDAY, [_transfer(registry, "ABC-123", "Juan Perez")])


def test_read_failure_raises(book: CustodyBook, store: FakeRegistryStore) -> None:
    store.failures.reads = True

    with pytest.raises(CustodyReadError):
        book.history(TUESDAY)
