"""Committed custody transfers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from vehicle_custody.domain.model.entity import Entity
from vehicle_custody.domain.model.enums import SourceKind

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class CustodyTransfer(Entity):
    """A reconciled transfer stored when its day's batch is committed.

    ``date`` is the ledger date the batch was committed for; ``transferred_at``
    is the naive chat timestamp of the line, when it had one.
    """

    date: date
    vehicle_id: UUID
    to_driver_id: UUID
    from_driver_id: UUID | None = None
    transferred_at: datetime | None = None
    extracted_text: str
    source_kind: SourceKind = SourceKind.WHATSAPP
    source_label: str = ""
    line_number: int = 0
    recorded_at: datetime
