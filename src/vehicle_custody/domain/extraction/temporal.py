"""Date/time recognition in transcript lines.

Each layout is an independent, side-effect-free attempt; the first layout that
yields a valid timestamp wins. Matches that do not form a real calendar date
(day 31 in a 30-day month, hour 25, ...) fall through to the next layout.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

log = logging.getLogger(__name__)

_TWO_DIGIT_YEAR_BASE = 2000


@dataclass(frozen=True, slots=True)
class DateTimeLayout:
    """Day-first slash date followed by a clock time.

    Groups: day, month, year, hour, minute and optionally seconds. Seconds are
    truncated; the result has minute precision.
    """

    name: str
    pattern: re.Pattern[str]

    def parse(self, text: str) -> datetime | None:
        """Return the first match in ``text`` that forms a real date and time."""

        for match in self.pattern.finditer(text):
            day, month, year, hour, minute = (int(match.group(i)) for i in range(1, 6))
            if year < 100:  # noqa: PLR2004
                year += _TWO_DIGIT_YEAR_BASE
            try:
                return datetime(year, month, day, hour, minute)  # noqa: DTZ001
            except ValueError:
                log.debug("Rejected %s match %r", self.name, match.group(0))
        return None


DEFAULT_LAYOUTS: tuple[DateTimeLayout, ...] = (
    DateTimeLayout(
        name="dd/mm/yyyy, hh:mm",
        pattern=re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4}),?\s*(\d{1,2}):(\d{2})(?!\d)"),
    ),
    DateTimeLayout(
        name="dd/mm/yy, hh:mm",
        pattern=re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{2}),?\s*(\d{1,2}):(\d{2})(?!\d)"),
    ),
    DateTimeLayout(
        name="[dd/mm/yy hh:mm:ss]",
        pattern=re.compile(
            r"\[(\d{1,2})/(\d{1,2})/(\d{2}|\d{4}),?\s+(\d{1,2}):(\d{2}):(\d{2})\]"
        ),
    ),
)


class TemporalExtractor:
    """Tries the configured layouts in order and returns the first success."""

    def __init__(self, layouts: Sequence[DateTimeLayout] = DEFAULT_LAYOUTS) -> None:
        self.layouts = tuple(layouts)

    def extract(self, text: str) -> datetime | None:
        for layout in self.layouts:
            timestamp = layout.parse(text)
            if timestamp is not None:
                return timestamp
        return None
