"""Transcript readers producing ``RawLine`` lists."""

from __future__ import annotations

from pathlib import Path

from vehicle_custody.domain.model import RawLine, SourceKind

from .schema import ChatRow
from .tabular import (
    TranscriptFormatError,
    lines_from_csv_text,
    lines_from_rows,
    read_csv_transcript,
)
from .text import lines_from_text, read_text_transcript


def source_kind_for(path: Path | str) -> SourceKind:
    return SourceKind.CSV if Path(path).suffix.lower() == ".csv" else SourceKind.WHATSAPP


def read_transcript(path: Path | str) -> list[RawLine]:
    """Read ``path`` with the reader matching its extension."""

    if source_kind_for(path) is SourceKind.CSV:
        return read_csv_transcript(path)
    return read_text_transcript(path)


__all__ = [
    "ChatRow",
    "TranscriptFormatError",
    "lines_from_csv_text",
    "lines_from_rows",
    "lines_from_text",
    "read_csv_transcript",
    "read_text_transcript",
    "read_transcript",
    "source_kind_for",
]
