from datetime import date

import httpx
import pytest

from core.enrichment import EnrichmentError, SongDetails, fetch_song_details, parse_song_details


def _transport(handler, seen=None):
    def wrapped(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped)


@pytest.mark.asyncio
async def test_fetch_sends_group_and_song_as_query_params():
    seen: list[httpx.Request] = []
    transport = _transport(
        lambda request: httpx.Response(
            200,
            json={"releaseDate": "2006-07-14", "text": "v1\nv2", "link": "http://x"},
        ),
        seen,
    )

    details = await fetch_song_details(
        base_url="http://lookup.test/",
        group="Muse",
        song="Supermassive Black Hole",
        transport=transport,
    )

    assert details == SongDetails(release_date="2006-07-14", text="v1\nv2", link="http://x")
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/info"
    assert seen[0].url.params["group"] == "Muse"
    assert seen[0].url.params["song"] == "Supermassive Black Hole"


@pytest.mark.asyncio
async def test_non_success_status_carries_the_code():
    transport = _transport(lambda request: httpx.Response(502, text="upstream down"))

    with pytest.raises(EnrichmentError) as exc_info:
        await fetch_song_details(base_url="http://lookup.test", group="g", song="s", transport=transport)

    assert exc_info.value.status_code == 502
    assert "502" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unparseable_body_is_an_enrichment_error():
    transport = _transport(lambda request: httpx.Response(200, text="<html>not json</html>"))

    with pytest.raises(EnrichmentError):
        await fetch_song_details(base_url="http://lookup.test", group="g", song="s", transport=transport)


@pytest.mark.asyncio
async def test_transport_failure_is_an_enrichment_error():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EnrichmentError) as exc_info:
        await fetch_song_details(base_url="http://lookup.test", group="g", song="s", transport=_transport(refuse))

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_empty_base_url_is_rejected():
    with pytest.raises(EnrichmentError):
        await fetch_song_details(base_url="  ", group="g", song="s")


def test_missing_fields_default_to_empty_and_unknown_fields_are_ignored():
    details = parse_song_details('{"text": "only text", "genre": "rock"}')
    assert details == SongDetails(release_date="", text="only text", link="")


def test_non_object_payload_is_rejected():
    with pytest.raises(EnrichmentError):
        parse_song_details("[1, 2, 3]")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2006-07-14", date(2006, 7, 14)),
        ("16.07.2006", date(2006, 7, 16)),
        ("", None),
        ("   ", None),
    ],
)
def test_release_date_value_accepts_known_formats(raw, expected):
    assert SongDetails(release_date=raw).release_date_value() == expected


def test_release_date_value_rejects_garbage():
    with pytest.raises(EnrichmentError):
        SongDetails(release_date="sometime in 2006").release_date_value()
