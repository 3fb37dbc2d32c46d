"""Line list -> deduplicated candidates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.extraction.deduplicate import dedupe
from vehicle_custody.domain.extraction.patterns import PatternExtractor
from vehicle_custody.domain.extraction.temporal import TemporalExtractor

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vehicle_custody.domain.model import RawLine, TransferCandidate

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ExtractionResult:
    candidates: list[TransferCandidate]
    lines_seen: int = 0
    raw_matches: int = 0

    @property
    def duplicates_collapsed(self) -> int:
        return self.raw_matches - len(self.candidates)


@dataclass(slots=True)
class ExtractionPipeline:
    """Pure, synchronous, single pass over an in-memory line list."""

    patterns: PatternExtractor = field(default_factory=PatternExtractor)
    temporal: TemporalExtractor = field(default_factory=TemporalExtractor)

    def extract_line(self, line: RawLine) -> list[TransferCandidate]:
        if not line.text.strip():
            return []
        timestamp = self.temporal.extract(line.text)
        return self.patterns.extract(line, timestamp=timestamp)

    def run(self, lines: Iterable[RawLine]) -> ExtractionResult:
        matches: list[TransferCandidate] = []
        lines_seen = 0
        for line in lines:
            lines_seen += 1
            matches.extend(self.extract_line(line))

        result = ExtractionResult(
            candidates=dedupe(matches),
            lines_seen=lines_seen,
            raw_matches=len(matches),
        )
        log.info(
            "Extracted %s candidates from %s lines (%s duplicates collapsed)",
            len(result.candidates),
            result.lines_seen,
            result.duplicates_collapsed,
        )
        return result
