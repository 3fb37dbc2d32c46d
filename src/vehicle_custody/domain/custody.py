"""Committed custody history and the current holder of each vehicle.

A commit replaces every stored transfer of its ledger date, so re-processing a
day never duplicates history. Afterwards each touched vehicle's holder is
re-derived from its latest transfer across all dates: the newest date wins,
then the latest chat time within that date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vehicle_custody.domain.business_days import utcnow
from vehicle_custody.domain.model import CustodyTransfer, SourceKind
from vehicle_custody.domain.ports import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date
    from uuid import UUID

    from vehicle_custody.domain.business_days import Clock
    from vehicle_custody.domain.model import ReconciledTransfer
    from vehicle_custody.domain.ports import RegistryRepositories, RegistryUnitOfWorkFactory

log = logging.getLogger(__name__)


class CustodyError(RuntimeError):
    """Base error for custody history persistence failures."""


class CustodyReadError(CustodyError):
    """Committed transfers could not be queried."""


class CustodyWriteError(CustodyError):
    """Committed transfers could not be stored."""


@dataclass(slots=True)
class CustodyBook:
    uow_factory: RegistryUnitOfWorkFactory
    clock: Clock = utcnow

    def replace_day(
        self,
        day: date,
        transfers: Iterable[ReconciledTransfer],
        *,
        source_kind: SourceKind = SourceKind.WHATSAPP,
    ) -> list[CustodyTransfer]:
        """Store the valid ``transfers`` as the whole history of ``day``."""

        recorded_at = self.clock().astimezone(UTC)
        entries = [
            _entry(day, transfer, source_kind=source_kind, recorded_at=recorded_at)
            for transfer in _chronological(transfers)
            if transfer.is_valid
        ]
        try:
            with self.uow_factory() as uow:
                repositories = uow.repositories
                touched = repositories.transfers.remove_for(day)
                for entry in entries:
                    repositories.transfers.add(entry)
                touched.update(entry.vehicle_id for entry in entries)
                for vehicle_id in sorted(touched, key=str):
                    _refresh_holder(repositories, vehicle_id)
                uow.commit()
        except PersistenceError as exc:
            raise CustodyWriteError(f"Cannot store custody transfers for {day}") from exc
        log.info("Stored %s custody transfers for %s", len(entries), day)
        return entries

    def history(self, day: date) -> list[CustodyTransfer]:
        try:
            with self.uow_factory() as uow:
                return uow.repositories.transfers.list_for(day)
        except PersistenceError as exc:
            raise CustodyReadError(f"Cannot read custody transfers for {day}") from exc


def _chronological(transfers: Iterable[ReconciledTransfer]) -> list[ReconciledTransfer]:
    # untimed lines keep their transcript position ahead of timed ones
    return sorted(
        transfers,
        key=lambda transfer: (
            transfer.candidate.timestamp is not None,
            transfer.candidate.timestamp or datetime.min,  # noqa: DTZ901
        ),
    )


def _entry(
    day: date,
    transfer: ReconciledTransfer,
    *,
    source_kind: SourceKind,
    recorded_at: datetime,
) -> CustodyTransfer:
    candidate = transfer.candidate
    vehicle, receiver = transfer.vehicle_match, transfer.to_driver_match
    if vehicle is None or receiver is None:
        raise ValueError(f"Line {candidate.line_number} is not a resolved transfer")
    return CustodyTransfer(
        date=day,
        vehicle_id=vehicle.id,
        to_driver_id=receiver.id,
        from_driver_id=transfer.from_driver_match.id if transfer.from_driver_match else None,
        transferred_at=candidate.timestamp,
        extracted_text=candidate.original_text,
        source_kind=source_kind,
        source_label=candidate.source_label,
        line_number=candidate.line_number,
        recorded_at=recorded_at,
    )


def _refresh_holder(repositories: RegistryRepositories, vehicle_id: UUID) -> None:
    vehicle = repositories.vehicles.get(vehicle_id)
    if vehicle is None:
        log.warning("Committed transfer references unknown vehicle %s", vehicle_id)
        return
    latest = repositories.transfers.latest_for_vehicle(vehicle_id)
    holder = latest.to_driver_id if latest is not None else None
    if vehicle.current_driver_id != holder:
        log.debug("Vehicle %s now held by %s", vehicle.plate, holder)
        vehicle.current_driver_id = holder
