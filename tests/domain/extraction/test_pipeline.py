from __future__ import annotations

from datetime import datetime

from tests.helpers.transfers import CHAT_TRANSCRIPT, make_lines
from vehicle_custody.adapters.transcripts import lines_from_text
from vehicle_custody.domain.extraction import ExtractionPipeline


def test_pipeline_extracts_and_collapses_duplicates() -> None:
    result = ExtractionPipeline().run(lines_from_text(CHAT_TRANSCRIPT, source_label="chat.txt"))

    assert result.lines_seen == 5
    assert result.raw_matches == 4
    assert result.duplicates_collapsed == 1
    assert [(c.vehicle_token, c.to_driver_token) for c in result.candidates] == [
        ("ABC-123", "Juan Perez"),
        ("DEF-789", "Pedro"),
        ("XYZ-999", "Luis"),
    ]
    assert result.candidates[0].timestamp == datetime(2024, 3, 12, 9, 30)
    assert result.candidates[1].line_number == 3


def test_pipeline_skips_blank_lines_and_tolerates_noise() -> None:
    lines = make_lines("", "   ", "hola", "le paso el carro ABC-123 a Juan")

    result = ExtractionPipeline().run(lines)

    assert result.lines_seen == 4
    assert len(result.candidates) == 1
    assert result.candidates[0].timestamp is None


def test_pipeline_on_empty_input() -> None:
    result = ExtractionPipeline().run([])

    assert result.candidates == []
    assert result.lines_seen == 0
