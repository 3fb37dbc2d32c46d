"""Free text -> transfer candidates.

Flow per batch:
1) normalize tokens
2) recognise timestamps per line
3) apply the ordered rule table per line
4) collapse duplicates, first seen wins
"""

from __future__ import annotations

from .deduplicate import candidate_key, dedupe
from .normalize import clean_driver_name, compact_plate, normalize_plate, normalize_token
from .patterns import DEFAULT_RULES, PatternExtractor, PatternRule, RoleMapping
from .pipeline import ExtractionPipeline, ExtractionResult
from .temporal import DEFAULT_LAYOUTS, DateTimeLayout, TemporalExtractor

__all__ = [
    "DEFAULT_LAYOUTS",
    "DEFAULT_RULES",
    "DateTimeLayout",
    "ExtractionPipeline",
    "ExtractionResult",
    "PatternExtractor",
    "PatternRule",
    "RoleMapping",
    "TemporalExtractor",
    "candidate_key",
    "clean_driver_name",
    "compact_plate",
    "dedupe",
    "normalize_plate",
    "normalize_token",
]
