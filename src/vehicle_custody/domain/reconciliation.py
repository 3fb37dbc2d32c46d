"""Resolve candidate tokens against the canonical registry.

Matching policy:
- vehicles: exact plate equality after normalization, with or without
  separators; otherwise up to three suggestions sharing a three-character prefix
- drivers: normalized containment either way; otherwise up to three
  suggestions sharing a first name

Reconciliation never raises for unresolved tokens. They end up in the
``suggestions`` bucket and the transfer is reported invalid, not dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vehicle_custody.domain.extraction.normalize import (
    compact_plate,
    normalize_plate,
    normalize_token,
)
from vehicle_custody.domain.model import ReconciledTransfer, Role, Suggestions

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from vehicle_custody.domain.model import (
        CanonicalDriver,
        CanonicalVehicle,
        RegistrySnapshot,
        TransferCandidate,
    )

log = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
_PREFIX_LENGTH = 3


class UnknownRegistryEntryError(LookupError):
    """Raised when a manual override names an id missing from the registry."""


@dataclass(slots=True)
class ReconciliationSummary:
    transfers: list[ReconciledTransfer]

    @property
    def valid(self) -> int:
        return sum(1 for transfer in self.transfers if transfer.is_valid)

    @property
    def invalid(self) -> int:
        return len(self.transfers) - self.valid


class Reconciler:
    """Stateless resolver; the registry snapshot is supplied per call."""

    def __init__(self, *, max_suggestions: int = MAX_SUGGESTIONS) -> None:
        self.max_suggestions = max_suggestions

    def reconcile(
        self,
        candidate: TransferCandidate,
        registry: RegistrySnapshot,
    ) -> ReconciledTransfer:
        vehicle = match_vehicle(candidate.vehicle_token, registry.vehicles)
        to_driver = match_driver(candidate.to_driver_token, registry.drivers)
        from_driver = (
            match_driver(candidate.from_driver_token, registry.drivers)
            if candidate.from_driver_token
            else None
        )

        suggestions = Suggestions()
        if vehicle is None:
            suggestions.vehicle = suggest_vehicles(
                candidate.vehicle_token, registry.vehicles, limit=self.max_suggestions
            )
        if to_driver is None:
            suggestions.to_driver = suggest_drivers(
                candidate.to_driver_token, registry.drivers, limit=self.max_suggestions
            )
        if from_driver is None and candidate.from_driver_token:
            suggestions.from_driver = suggest_drivers(
                candidate.from_driver_token, registry.drivers, limit=self.max_suggestions
            )

        return ReconciledTransfer(
            candidate=candidate,
            vehicle_match=vehicle,
            from_driver_match=from_driver,
            to_driver_match=to_driver,
            suggestions=suggestions,
        )

    def reconcile_all(
        self,
        candidates: Iterable[TransferCandidate],
        registry: RegistrySnapshot,
    ) -> ReconciliationSummary:
        summary = ReconciliationSummary(
            transfers=[self.reconcile(candidate, registry) for candidate in candidates]
        )
        log.info(
            "Reconciled %s transfers: valid=%s, needs review=%s",
            len(summary.transfers),
            summary.valid,
            summary.invalid,
        )
        return summary

    def override(
        self,
        transfer: ReconciledTransfer,
        role: Role,
        registry_id: UUID,
        registry: RegistrySnapshot,
    ) -> ReconciledTransfer:
        """Apply an operator's explicit selection for ``role``."""

        entry = registry.vehicle(registry_id) if role is Role.VEHICLE else registry.driver(
            registry_id
        )
        if entry is None:
            raise UnknownRegistryEntryError(f"No {role.value} registered with id {registry_id}")
        transfer.assign(role, entry)
        log.debug(
            "Manual override on line %s: %s -> %s (valid=%s)",
            transfer.candidate.line_number,
            role.value,
            registry_id,
            transfer.is_valid,
        )
        return transfer


def match_vehicle(
    token: str,
    vehicles: Iterable[CanonicalVehicle],
) -> CanonicalVehicle | None:
    plate = normalize_plate(token)
    if not plate:
        return None
    compact = compact_plate(plate)
    for vehicle in vehicles:
        candidate_plate = normalize_plate(vehicle.plate)
        if candidate_plate == plate or compact_plate(candidate_plate) == compact:
            return vehicle
    return None


def match_driver(
    token: str | None,
    drivers: Iterable[CanonicalDriver],
) -> CanonicalDriver | None:
    name = normalize_token(token)
    if not name:
        return None
    contained: CanonicalDriver | None = None
    for driver in drivers:
        canonical = normalize_token(driver.name)
        if not canonical:
            continue
        if canonical == name:
            return driver
        if contained is None and (name in canonical or canonical in name):
            contained = driver
    return contained


def suggest_vehicles(
    token: str,
    vehicles: Iterable[CanonicalVehicle],
    *,
    limit: int = MAX_SUGGESTIONS,
) -> list[CanonicalVehicle]:
    compact = compact_plate(token)
    if not compact:
        return []
    ranked: list[tuple[int, str, CanonicalVehicle]] = []
    for vehicle in vehicles:
        other = compact_plate(vehicle.plate)
        if not other:
            continue
        if compact[:_PREFIX_LENGTH] in other or other[:_PREFIX_LENGTH] in compact:
            ranked.append((-_common_prefix_length(compact, other), other, vehicle))
    ranked.sort(key=lambda item: (item[0], item[1]))
    return [vehicle for _, _, vehicle in ranked[:limit]]


def suggest_drivers(
    token: str | None,
    drivers: Iterable[CanonicalDriver],
    *,
    limit: int = MAX_SUGGESTIONS,
) -> list[CanonicalDriver]:
    words = normalize_token(token).split()
    if not words:
        return []
    first_name = words[0]
    ranked: list[tuple[int, str, CanonicalDriver]] = []
    for driver in drivers:
        canonical = normalize_token(driver.name)
        canonical_words = canonical.split()
        if not canonical_words:
            continue
        if canonical_words[0] == first_name:
            score = 0
        elif first_name in canonical_words or canonical_words[0] in words:
            score = 1
        else:
            continue
        ranked.append((score, canonical, driver))
    ranked.sort(key=lambda item: (item[0], item[1]))
    return [driver for _, _, driver in ranked[:limit]]


def _common_prefix_length(left: str, right: str) -> int:
    length = 0
    for a, b in zip(left, right, strict=False):
        if a != b:
            break
        length += 1
    return length
