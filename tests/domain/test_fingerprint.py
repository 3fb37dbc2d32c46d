from __future__ import annotations

from datetime import date, datetime

import pytest

from tests.helpers.transfers import make_candidate
from vehicle_custody.domain.fingerprint import (
    FINGERPRINT_VERSION,
    FingerprintError,
    checksum,
    describe_fingerprint,
    fingerprint,
    is_valid_fingerprint,
    projection,
)
from vehicle_custody.domain.model import ProcessingBatch, SourceKind, TransferCandidate

DAY = date(2024, 3, 12)


def _batch(
    *candidates: TransferCandidate,
    labels: tuple[str, ...] = ("chat.txt",),
    source_kind: SourceKind = SourceKind.WHATSAPP,
) -> ProcessingBatch:
    return ProcessingBatch.from_transfers(
        date=DAY, transfers=candidates, file_labels=labels, source_kind=source_kind
    )


def test_fingerprint_has_expected_shape() -> None:
    value = fingerprint(_batch(make_candidate()))

    parts = describe_fingerprint(value)
    assert parts.version == FINGERPRINT_VERSION
    assert len(parts.digest) == 64
    assert len(parts.checksum) == 2
    assert is_valid_fingerprint(value)


def test_fingerprint_is_order_insensitive() -> None:
    a = make_candidate("ABC-123", "Juan Perez")
    b = make_candidate("DEF-789", "Pedro", timestamp=datetime(2024, 3, 12, 11, 2))

    first = fingerprint(_batch(a, b, labels=("one.txt", "two.txt")))
    second = fingerprint(_batch(b, a, labels=("two.txt", "one.txt")))

    assert first == second


def test_fingerprint_normalizes_tokens_and_labels() -> None:
    raw = _batch(make_candidate("abc-123", "  JUAN   perez"), labels=("Chat.TXT ",))
    clean = _batch(make_candidate("ABC-123", "juan perez"), labels=("chat.txt",))

    assert fingerprint(raw) == fingerprint(clean)


def test_fingerprint_ignores_source_kind_and_extraction_metadata() -> None:
    candidate = make_candidate()
    other = make_candidate(confidence=0.5, pattern_id="VEHICLE_FOR_DRIVER", line_number=9)

    assert fingerprint(_batch(candidate)) == fingerprint(
        _batch(other, source_kind=SourceKind.CSV)
    )


def test_fingerprint_changes_with_content() -> None:
    base = fingerprint(_batch(make_candidate()))

    assert base != fingerprint(_batch(make_candidate("ABC-124")))
    assert base != fingerprint(_batch(make_candidate(), make_candidate("DEF-789")))
    assert base != fingerprint(_batch(make_candidate(), labels=("other.txt",)))
    assert base != fingerprint(_batch(make_candidate(timestamp=datetime(2024, 3, 12, 9, 30))))


def test_declared_count_is_part_of_the_fingerprint() -> None:
    candidate = make_candidate()
    derived = _batch(candidate)
    declared = ProcessingBatch(
        date=DAY,
        transfers_count=5,
        file_labels=frozenset({"chat.txt"}),
        transfers=(candidate,),
    )

    assert fingerprint(derived) != fingerprint(declared)


def test_projection_orders_missing_parts_first() -> None:
    undated = make_candidate()
    dated = make_candidate(timestamp=datetime(2024, 3, 12, 8, 0))

    payload = projection(_batch(dated, undated))

    assert payload["transfers"][0][3] is None
    assert payload["transfers"][1][3] == "2024-03-12T08:00:00"
    assert payload["transfers_count"] == 2


def test_fingerprint_is_scoped_by_ledger_date_not_content() -> None:
    empty = ProcessingBatch(date=DAY, transfers_count=0)
    other_day = ProcessingBatch(date=date(2024, 1, 1), transfers_count=0)

    assert fingerprint(empty) == fingerprint(other_day)


def test_checksum_is_two_hex_digits() -> None:
    assert checksum("") == "00"
    assert checksum("A") == "41"


@pytest.mark.parametrize(
    "value",
    [None, "", "v1-abc-00", "v1-" + "0" * 64 + "-zz", "x" * 70, "v1-" + "A" * 64 + "-00"],
)
def test_invalid_fingerprints(value: str | None) -> None:
    assert not is_valid_fingerprint(value)


def test_describe_rejects_malformed_value() -> None:
    with pytest.raises(FingerprintError):
        describe_fingerprint("not-a-fingerprint")
