"""
Song-details lookup service client.

Used endpoint:
- GET /info?group=...&song=...  -> {"releaseDate": "...", "text": "...", "link": "..."}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import httpx

RELEASE_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y")


# Lookup failures are explicit and separable from other runtime errors.
class EnrichmentError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SongDetails:
    release_date: str = ""
    text: str = ""
    link: str = ""

    def release_date_value(self) -> date | None:
        raw = self.release_date.strip()
        if not raw:
            return None
        for fmt in RELEASE_DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date()
            except ValueError:
                continue
        raise EnrichmentError(f"Unrecognized release date: {raw!r}")


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise EnrichmentError("API_URL is empty.")
    return base_url.rstrip("/")


def _field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def parse_song_details(body: str) -> SongDetails:
    """
    Parse the /info payload. Unknown keys are ignored, missing keys become "".
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise EnrichmentError("Song details response is not valid JSON.") from e

    if not isinstance(data, dict):
        raise EnrichmentError("Song details response is not a JSON object.")

    return SongDetails(
        release_date=_field(data, "releaseDate"),
        text=_field(data, "text"),
        link=_field(data, "link"),
    )


async def fetch_song_details(
    *,
    base_url: str,
    group: str,
    song: str,
    timeout_s: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SongDetails:
    """
    Look up release date, lyrics and link for a group/song pair.
    """
    base_url = _normalize_base_url(base_url)

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport) as client:
            resp = await client.get("/info", params={"group": group, "song": song})
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise EnrichmentError(f"Song details request failed: {e}") from e

    if not resp.is_success:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:300]
        raise EnrichmentError(
            f"Song details request failed: {resp.status_code} {body}".rstrip(),
            status_code=resp.status_code,
        )

    return parse_song_details(resp.text)
