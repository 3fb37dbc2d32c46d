"""CSV chat tables with ``date,time,sender,message`` columns."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from vehicle_custody.adapters.transcripts.schema import ChatRow
from vehicle_custody.domain.model import RawLine

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "time", "message")


class TranscriptFormatError(ValueError):
    """Raised when a table lacks the columns needed to build lines."""


def lines_from_rows(rows: Iterable[dict[str, str]], *, source_label: str = "") -> list[RawLine]:
    """Validate rows one by one; invalid rows are skipped, never fatal.

    Line numbers count the header as line 1, matching what a spreadsheet shows.
    """

    lines: list[RawLine] = []
    skipped = 0
    for number, row in enumerate(rows, start=2):
        try:
            parsed = ChatRow.model_validate(row)
        except ValidationError as exc:
            skipped += 1
            log.warning(
                "Skipping row %s of %s: %s",
                number,
                source_label or "<table>",
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
            continue
        lines.append(
            RawLine(text=parsed.as_line_text(), line_number=number, source_label=source_label)
        )
    if skipped:
        log.info("Skipped %s invalid rows from %s", skipped, source_label or "<table>")
    return lines


def lines_from_csv_text(text: str, *, source_label: str = "") -> list[RawLine]:
    reader = csv.DictReader(io.StringIO(text))
    columns = {name.strip().lower() for name in reader.fieldnames or ()}
    missing = [column for column in REQUIRED_COLUMNS if column not in columns]
    if missing:
        raise TranscriptFormatError(
            f"{source_label or 'CSV input'} is missing columns: {', '.join(missing)}"
        )
    rows = (
        {key.strip().lower(): value or "" for key, value in row.items() if key is not None}
        for row in reader
    )
    return lines_from_rows(rows, source_label=source_label)


def read_csv_transcript(path: Path | str) -> list[RawLine]:
    table = Path(path)
    lines = lines_from_csv_text(table.read_text(encoding="utf-8-sig"), source_label=table.name)
    log.info("Read %s rows from %s", len(lines), table)
    return lines
