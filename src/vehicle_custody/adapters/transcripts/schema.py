"""Pydantic models describing tabular transcript rows."""

from __future__ import annotations

import datetime as dt
import re

from pydantic import BaseModel, ConfigDict, field_validator

_DATE_FORMATS = ("%d/%m/%Y", "%d/%m/%y", "%Y-%m-%d", "%d-%m-%Y")
_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?$")


class TranscriptBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class ChatRow(TranscriptBaseModel):
    """One ``date,time,sender,message`` row of a chat export table."""

    date: dt.date
    time: str
    sender: str = ""
    message: str

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        text = value.strip()
        for layout in _DATE_FORMATS:
            try:
                return dt.datetime.strptime(text, layout).date()  # noqa: DTZ007
            except ValueError:
                continue
        raise ValueError(f"Unrecognised date: {value!r}")

    @field_validator("time")
    @classmethod
    def _parse_time(cls, value: str) -> str:
        match = _TIME_RE.match(value)
        if match is None:
            raise ValueError(f"Unrecognised time: {value!r}")
        hour, minute = int(match.group("hour")), int(match.group("minute"))
        if hour > 23 or minute > 59:  # noqa: PLR2004
            raise ValueError(f"Time out of range: {value!r}")
        # seconds are dropped; timestamps are minute precision
        return f"{hour:02d}:{minute:02d}"

    @field_validator("message")
    @classmethod
    def _require_message(cls, value: str) -> str:
        if not value:
            raise ValueError("Empty message")
        return value

    def as_line_text(self) -> str:
        """Render the row the way a chat export line reads."""

        stamp = f"{self.date:%d/%m/%Y}, {self.time}"
        if self.sender:
            return f"{stamp} - {self.sender}: {self.message}"
        return f"{stamp} - {self.message}"
