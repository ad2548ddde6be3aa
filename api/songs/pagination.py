"""
Verse pagination over song lyrics.

Lyrics are split into newline-delimited verses and sliced with the same
page/limit pair used for row pagination.
"""

from __future__ import annotations

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Largest value PostgreSQL accepts for a bigint, LIMIT or OFFSET parameter.
MAX_VALUE = 2**63 - 1


def parse_positive_int(raw: str | None, default: int) -> int:
    """
    Missing, non-integer, non-positive and out-of-range values fall back to `default`.
    """
    try:
        value = int((raw or "").strip())
    except ValueError:
        return default
    return value if 0 < value <= MAX_VALUE else default


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def split_verses(text: str | None) -> list[str]:
    if not text:
        return []
    return text.split("\n")


def paginate_verses(text: str | None, page: int, limit: int) -> list[str]:
    verses = split_verses(text)
    start = page_offset(page, limit)
    end = start + limit

    if start > len(verses):
        return []
    return verses[start : min(end, len(verses))]


def join_verses(verses: list[str]) -> str:
    return "\n".join(verses)
