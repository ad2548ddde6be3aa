"""
Pydantic schemas for song endpoints.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class SongSummary(BaseModel):
    id: int
    group: str
    song: str
    release_date: date | None = None


class SongSummaryWithText(SongSummary):
    # Only the verses that fall on the requested page.
    text: str = ""


class AddSongRequest(BaseModel):
    group: str = Field(..., min_length=1, max_length=500)
    song: str = Field(..., min_length=1, max_length=500)


class UpdateSongRequest(BaseModel):
    # Empty group/song mean "keep the stored value".
    group: str = Field(default="", max_length=500)
    song: str = Field(default="", max_length=500)
    release_date: date | None = None
    text: str | None = None
    link: str | None = None

    @field_validator("release_date", mode="before")
    @classmethod
    def release_date_is_iso_string(cls, value):
        """
        Only a YYYY-MM-DD string (or null) is a date; numbers are not timestamps here.
        """
        if value is None or isinstance(value, date):
            return value
        if not isinstance(value, str) or not _ISO_DATE.match(value):
            raise ValueError("release_date must be a YYYY-MM-DD string")
        return datetime.strptime(value, "%Y-%m-%d").date()
