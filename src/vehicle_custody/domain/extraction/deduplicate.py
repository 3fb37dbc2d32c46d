"""Intra-batch deduplication of transfer candidates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vehicle_custody.domain.extraction.normalize import normalize_plate, normalize_token

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vehicle_custody.domain.model import TransferCandidate

type CandidateKey = tuple[str, str, str]

NO_TIMESTAMP = "no-date"


def candidate_key(candidate: TransferCandidate) -> CandidateKey:
    """Identity of the real-world event a candidate describes."""

    timestamp = candidate.timestamp.isoformat() if candidate.timestamp else NO_TIMESTAMP
    return (
        normalize_plate(candidate.vehicle_token),
        normalize_token(candidate.to_driver_token),
        timestamp,
    )


def dedupe(candidates: Iterable[TransferCandidate]) -> list[TransferCandidate]:
    """Collapse candidates sharing a key; the first occurrence survives."""

    seen: set[CandidateKey] = set()
    survivors: list[TransferCandidate] = []
    for candidate in candidates:
        key = candidate_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        survivors.append(candidate)
    return survivors
