"""Deterministic batch fingerprints for change detection.

A fingerprint reads ``v1-<sha256 hex>-<checksum>``. The projection that gets
hashed is order-insensitive over transfers and file labels but carries the
declared ``transfers_count`` verbatim, so a count that disagrees with the
transfer list is itself a detectable change.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vehicle_custody.domain.extraction.normalize import normalize_plate, normalize_token

if TYPE_CHECKING:
    from vehicle_custody.domain.model import ProcessingBatch, TransferCandidate

log = logging.getLogger(__name__)

FINGERPRINT_VERSION = "v1"
_FINGERPRINT_RE = re.compile(
    r"^(?P<version>v\d+)-(?P<digest>[0-9a-f]{64})-(?P<checksum>[0-9a-f]{2})$"
)


class FingerprintError(RuntimeError):
    """Raised when a batch cannot be reduced to a fingerprint."""


type TransferTuple = tuple[str, str, str | None, str | None]


@dataclass(frozen=True, slots=True)
class FingerprintParts:
    version: str
    digest: str
    checksum: str


def transfer_tuple(candidate: TransferCandidate) -> TransferTuple:
    from_driver = normalize_token(candidate.from_driver_token) or None
    timestamp = candidate.timestamp.isoformat() if candidate.timestamp is not None else None
    return (
        normalize_plate(candidate.vehicle_token),
        normalize_token(candidate.to_driver_token),
        from_driver,
        timestamp,
    )


def projection(batch: ProcessingBatch) -> dict[str, Any]:
    """Normalized, sorted view of ``batch``; ``source_kind`` is not part of it."""

    # None does not compare with str; missing parts order first
    transfers = sorted((transfer_tuple(candidate) for candidate in batch.transfers), key=_sort_key)
    labels = sorted({label for label in map(normalize_token, batch.file_labels) if label})
    return {
        "file_labels": labels,
        "transfers": [list(item) for item in transfers],
        "transfers_count": batch.transfers_count,
    }


def canonical_text(payload: dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def checksum(text: str) -> str:
    return f"{sum(text.encode('utf-8')) % 256:02x}"


def fingerprint(batch: ProcessingBatch) -> str:
    try:
        text = canonical_text(projection(batch))
    except (TypeError, ValueError, AttributeError) as exc:
        raise FingerprintError(f"Cannot fingerprint batch for {batch.date}: {exc}") from exc

    digest = hashlib.sha256(f"{FINGERPRINT_VERSION}:{text}".encode()).hexdigest()
    value = f"{FINGERPRINT_VERSION}-{digest}-{checksum(text)}"
    log.debug("Fingerprint for %s: %s...", batch.date, value[:15])
    return value


def is_valid_fingerprint(value: str | None) -> bool:
    return bool(value) and _FINGERPRINT_RE.match(value or "") is not None


def describe_fingerprint(value: str) -> FingerprintParts:
    match = _FINGERPRINT_RE.match(value)
    if match is None:
        raise FingerprintError(f"Malformed fingerprint: {value!r}")
    return FingerprintParts(
        version=match.group("version"),
        digest=match.group("digest"),
        checksum=match.group("checksum"),
    )


def _sort_key(item: TransferTuple) -> tuple[tuple[bool, str], ...]:
    return tuple((part is not None, part or "") for part in item)
