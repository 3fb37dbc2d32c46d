"""Heuristic transfer-statement rules.

Every rule owns its pattern, its base confidence and the mapping from capture
groups to semantic roles, so adding a rule never touches shared dispatch code.
All rules are tried on every line; overlapping results are left for the
deduplication step.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vehicle_custody.domain.extraction.normalize import clean_driver_name, normalize_plate
from vehicle_custody.domain.model import TransferCandidate

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime

    from vehicle_custody.domain.model import RawLine

log = logging.getLogger(__name__)

KEYWORD_BONUS = 0.05
DEFAULT_KEYWORDS: tuple[str, ...] = ("transferir", "entrego", "paso", "recibe")

_VEHICLE_NOUN = r"(?:carro|veh[ií]culo|auto|taxi|m[oó]vil)"
# A plate must carry a digit: "ABC-123", "2345-XYZ", "ABC 123", "15"
_PLATE = r"((?=[A-Z]*\s?[A-Z0-9-]*\d)[A-Z0-9]+(?:-[A-Z0-9]+)*(?:\s\d+(?:-[A-Z0-9]+)*)?)"
# Up to four words of letters (accented letters included)
_NAME = r"([^\W\d_]+(?:[ \t]+[^\W\d_]+){0,3})"


def _rule_pattern(template: str) -> re.Pattern[str]:
    expanded = (
        template.replace("{vehicle_noun}", _VEHICLE_NOUN)
        .replace("{plate}", _PLATE)
        .replace("{name}", _NAME)
    )
    return re.compile(expanded, re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class CapturedRoles:
    vehicle: str
    to_driver: str
    from_driver: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleMapping:
    """Which capture group plays which role, for one specific rule."""

    vehicle: int
    to_driver: int
    from_driver: int | None = None

    def __call__(self, match: re.Match[str]) -> CapturedRoles:
        return CapturedRoles(
            vehicle=match.group(self.vehicle) or "",
            to_driver=match.group(self.to_driver) or "",
            from_driver=(
                match.group(self.from_driver) if self.from_driver is not None else None
            ),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class PatternRule:
    id: str
    matcher: re.Pattern[str]
    base_confidence: float
    roles: RoleMapping
    description: str = ""


DEFAULT_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        id="PASS_VEHICLE_TO",
        matcher=_rule_pattern(
            r"(?:le\s+paso|paso|entrego|doy)\s+(?:el\s+)?{vehicle_noun}\s+{plate}\s+a\s+{name}"
        ),
        base_confidence=0.9,
        roles=RoleMapping(vehicle=1, to_driver=2),
        description='"le paso el carro X a Y"',
    ),
    PatternRule(
        id="VEHICLE_PASS_TO",
        matcher=_rule_pattern(
            r"(?:el\s+)?{vehicle_noun}\s+{plate}\s+se\s+lo\s+(?:paso|entrego|doy)\s+a\s+{name}"
        ),
        base_confidence=0.85,
        roles=RoleMapping(vehicle=1, to_driver=2),
        description='"el carro X se lo paso a Y"',
    ),
    PatternRule(
        id="DRIVER_RECEIVES",
        matcher=_rule_pattern(
            r"{name}\s+(?:recibe|toma|agarra)\s+(?:el\s+)?{vehicle_noun}\s+{plate}"
        ),
        base_confidence=0.8,
        roles=RoleMapping(to_driver=1, vehicle=2),
        description='"Y recibe el carro X"',
    ),
    PatternRule(
        id="TRANSFER_VEHICLE",
        matcher=_rule_pattern(
            r"(?:transferir|transferencia(?:\s+de)?)\s+(?:el\s+)?{vehicle_noun}\s+{plate}\s+a\s+{name}"
        ),
        base_confidence=0.9,
        roles=RoleMapping(vehicle=1, to_driver=2),
        description='"transferir carro X a Y"',
    ),
    PatternRule(
        id="HANDOVER",
        matcher=_rule_pattern(
            r"{name}\s+(?:deja|entrega)\s+(?:el\s+)?{vehicle_noun}\s+{plate}"
            r".*?{name}\s+lo\s+(?:toma|recibe|agarra)"
        ),
        base_confidence=0.75,
        roles=RoleMapping(from_driver=1, vehicle=2, to_driver=3),
        description='"X deja el carro Z, Y lo toma"',
    ),
    PatternRule(
        id="VEHICLE_FOR_DRIVER",
        matcher=_rule_pattern(r"{vehicle_noun}\s+{plate}\s+para\s+{name}"),
        base_confidence=0.7,
        roles=RoleMapping(vehicle=1, to_driver=2),
        description='"carro X para Y"',
    ),
)


class PatternExtractor:
    """Apply the ordered rule table to single lines of text."""

    def __init__(
        self,
        rules: Sequence[PatternRule] = DEFAULT_RULES,
        *,
        keywords: Sequence[str] = DEFAULT_KEYWORDS,
    ) -> None:
        self.rules = tuple(rules)
        self.keywords = tuple(keyword.lower() for keyword in keywords)

    def extract(
        self,
        line: RawLine,
        *,
        timestamp: datetime | None = None,
    ) -> list[TransferCandidate]:
        """Return every candidate any rule finds in ``line``, in rule order."""

        return list(self._iter_candidates(line, timestamp))

    def confidence(self, rule: PatternRule, matched_span: str) -> float:
        lowered = matched_span.lower()
        hits = sum(1 for keyword in self.keywords if keyword in lowered)
        return round(min(rule.base_confidence + hits * KEYWORD_BONUS, 1.0), 4)

    def _iter_candidates(
        self,
        line: RawLine,
        timestamp: datetime | None,
    ) -> Iterator[TransferCandidate]:
        for rule in self.rules:
            for match in rule.matcher.finditer(line.text):
                captured = rule.roles(match)
                vehicle = normalize_plate(captured.vehicle)
                to_driver = clean_driver_name(captured.to_driver)
                if not vehicle or not to_driver:
                    log.debug("Dropping malformed %s match on line %s", rule.id, line.line_number)
                    continue
                from_driver = clean_driver_name(captured.from_driver) or None
                yield TransferCandidate(
                    vehicle_token=vehicle,
                    to_driver_token=to_driver,
                    from_driver_token=from_driver,
                    timestamp=timestamp,
                    confidence=self.confidence(rule, match.group(0)),
                    pattern_id=rule.id,
                    original_text=line.text,
                    line_number=line.line_number,
                    source_label=line.source_label,
                )
