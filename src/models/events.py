"""
Data models for parsed events.

ParsedEvent is the structured form of one line of scheduling text, as
returned by the parser and passed on to the calendar.
"""

import re

from pydantic import BaseModel, field_validator

OFFSET_PATTERN = re.compile(r"[+-]\d{2}:\d{2}$")


class Recurrence(BaseModel):
    """Recurrence rule without the 'RRULE:' prefix, e.g. FREQ=WEEKLY;BYDAY=TU."""

    rrule: str


class ParsedEvent(BaseModel):
    """Parsed calendar event."""

    title: str
    location: str | None
    label: str | None
    timezone: str
    start: str  # ISO 8601 with offset
    end: str  # ISO 8601 with offset
    recurrence: Recurrence | None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must be non-empty string")
        return value

    @field_validator("start", "end")
    @classmethod
    def has_offset(cls, value: str) -> str:
        if not OFFSET_PATTERN.search(value):
            raise ValueError("start/end must end with timezone offset like +09:00")
        return value
