"""Transfer statements as they move through extraction and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.model.enums import Role

if TYPE_CHECKING:
    from datetime import datetime

    from vehicle_custody.domain.model.registry import CanonicalDriver, CanonicalVehicle


@dataclass(frozen=True, slots=True)
class RawLine:
    """One transcript line or CSV row; the immutable input unit."""

    text: str
    line_number: int
    source_label: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class TransferCandidate:
    """Unverified transfer extracted from a single line.

    ``vehicle_token`` and ``to_driver_token`` are never empty; the extractor
    drops a match before building a candidate otherwise.
    """

    vehicle_token: str
    to_driver_token: str
    from_driver_token: str | None = None
    timestamp: datetime | None = None
    confidence: float
    pattern_id: str
    original_text: str
    line_number: int
    source_label: str = ""

    def __post_init__(self) -> None:
        if not self.vehicle_token or not self.to_driver_token:
            raise ValueError("Transfer candidates require a vehicle and a receiving driver")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence out of range: {self.confidence}")


@dataclass(slots=True)
class Suggestions:
    """Ranked registry entries offered to the operator for unresolved roles."""

    vehicle: list[CanonicalVehicle] = field(default_factory=list["CanonicalVehicle"])
    from_driver: list[CanonicalDriver] = field(default_factory=list["CanonicalDriver"])
    to_driver: list[CanonicalDriver] = field(default_factory=list["CanonicalDriver"])


@dataclass(slots=True, kw_only=True)
class ReconciledTransfer:
    """Candidate resolved against the registry, or carrying suggestions."""

    candidate: TransferCandidate
    vehicle_match: CanonicalVehicle | None = None
    from_driver_match: CanonicalDriver | None = None
    to_driver_match: CanonicalDriver | None = None
    suggestions: Suggestions = field(default_factory=Suggestions)

    @property
    def is_valid(self) -> bool:
        # from-driver is informational only
        return self.vehicle_match is not None and self.to_driver_match is not None

    def assign(self, role: Role, match: CanonicalVehicle | CanonicalDriver) -> None:
        """Replace the match for ``role`` with an operator-selected entry."""

        if role is Role.VEHICLE:
            self.vehicle_match = match  # pyright: ignore[reportAttributeAccessIssue]
            self.suggestions.vehicle = []
        elif role is Role.FROM_DRIVER:
            self.from_driver_match = match  # pyright: ignore[reportAttributeAccessIssue]
            self.suggestions.from_driver = []
        else:
            self.to_driver_match = match  # pyright: ignore[reportAttributeAccessIssue]
            self.suggestions.to_driver = []
