"""Plain-text chat exports: one ``RawLine`` per non-empty line."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vehicle_custody.domain.model import RawLine

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)


def lines_from_text(text: str, *, source_label: str = "") -> list[RawLine]:
    return list(_numbered(text.splitlines(), source_label=source_label))


def read_text_transcript(path: Path | str, *, encoding: str = "utf-8") -> list[RawLine]:
    transcript = Path(path)
    # chat exports frequently start with a BOM
    text = transcript.read_text(encoding="utf-8-sig" if encoding == "utf-8" else encoding)
    lines = lines_from_text(text, source_label=transcript.name)
    log.info("Read %s lines from %s", len(lines), transcript)
    return lines


def _numbered(raw_lines: Iterable[str], *, source_label: str) -> Iterable[RawLine]:
    for number, raw in enumerate(raw_lines, start=1):
        text = raw.strip()
        if text:
            yield RawLine(text=text, line_number=number, source_label=source_label)
