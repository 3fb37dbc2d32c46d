"""Canonical forms for free-text tokens.

These helpers are applied identically at extraction, reconciliation and
fingerprint time; equality guarantees downstream depend on that. All of them
are total: unusable input normalizes to the empty string.
"""

from __future__ import annotations

import re
import unicodedata

_NON_PLATE_CHARS = re.compile(r"[^A-Z0-9-]")
_PLATE_SEPARATORS = re.compile(r"[-\s]")
_LEADING_LIST_MARKER = re.compile(r"^\s*(?:[-*•>]+|\d+[.)])\s*")
_TRAILING_ANNOTATION = re.compile(r"\s*:.*$")
# Connectives a name capture can pick up: "... y Pedro lo toma"
_LEADING_CONNECTIVES = re.compile(
    r"^(?:(?:y|e|que|luego|ahora|entonces)\s+)+(?=\S)", re.IGNORECASE
)


def normalize_token(value: str | None) -> str:
    """Trim, lower-case and collapse internal whitespace."""

    if not value:
        return ""
    text = unicodedata.normalize("NFC", value)
    return " ".join(text.split()).lower()


def normalize_plate(value: str | None) -> str:
    """Upper-case and keep only ``[A-Z0-9-]``."""

    if not value:
        return ""
    text = unicodedata.normalize("NFKD", value)
    return _NON_PLATE_CHARS.sub("", text.upper())


def compact_plate(value: str | None) -> str:
    """Plate without separator characters, for separator-insensitive equality."""

    return _PLATE_SEPARATORS.sub("", normalize_plate(value))


def clean_driver_name(value: str | None) -> str:
    """Title-cased name without list markers, leading connectives or a ``: note`` suffix."""

    if not value:
        return ""
    cleaned = _LEADING_LIST_MARKER.sub("", value)
    cleaned = _LEADING_CONNECTIVES.sub("", cleaned.lstrip())
    cleaned = _TRAILING_ANNOTATION.sub("", cleaned)
    return normalize_token(cleaned).title()
