from __future__ import annotations

from datetime import datetime

from tests.helpers.transfers import make_candidate
from vehicle_custody.domain.extraction.deduplicate import NO_TIMESTAMP, candidate_key, dedupe


def test_candidate_key_normalizes_tokens() -> None:
    stamp = datetime(2024, 3, 12, 9, 30)

    key = candidate_key(make_candidate("abc-123", "  JUAN  perez", timestamp=stamp))

    assert key == ("ABC-123", "juan perez", stamp.isoformat())


def test_candidate_key_uses_sentinel_without_timestamp() -> None:
    assert candidate_key(make_candidate())[2] == NO_TIMESTAMP


def test_dedupe_keeps_first_occurrence_in_order() -> None:
    first = make_candidate(pattern_id="PASS_VEHICLE_TO", line_number=1)
    second = make_candidate("DEF-789", "Pedro", line_number=2)
    duplicate = make_candidate("abc-123", "juan perez", pattern_id="VEHICLE_FOR_DRIVER")

    result = dedupe([first, second, duplicate])

    assert result == [first, second]
    assert result[0].pattern_id == "PASS_VEHICLE_TO"


def test_dedupe_distinguishes_timestamps() -> None:
    morning = make_candidate(timestamp=datetime(2024, 3, 12, 9, 0))
    evening = make_candidate(timestamp=datetime(2024, 3, 12, 18, 0))
    undated = make_candidate()

    assert dedupe([morning, evening, undated]) == [morning, evening, undated]


def test_dedupe_ignores_from_driver() -> None:
    a = make_candidate(from_driver="Carlos")
    b = make_candidate(from_driver="Ana")

    assert dedupe([a, b]) == [a]
