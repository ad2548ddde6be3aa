import pytest

from songs.pagination import MAX_VALUE, join_verses, paginate_verses, parse_positive_int, split_verses

LYRICS = "verse one\nverse two\nverse three"


def test_first_page_returns_leading_verses():
    assert paginate_verses(LYRICS, 1, 2) == ["verse one", "verse two"]


def test_partial_last_page_is_clamped():
    assert paginate_verses(LYRICS, 2, 2) == ["verse three"]


def test_page_past_the_end_is_empty():
    assert paginate_verses(LYRICS, 3, 2) == []
    assert paginate_verses(LYRICS, 10, 5) == []


def test_page_starting_exactly_at_the_end_is_empty():
    assert paginate_verses("a\nb", 2, 2) == []


def test_empty_or_missing_lyrics_have_no_verses():
    assert split_verses("") == []
    assert split_verses(None) == []
    assert paginate_verses(None, 1, 10) == []


def test_join_round_trips_a_full_page():
    assert join_verses(paginate_verses(LYRICS, 1, 10)) == LYRICS


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 7),
        ("", 7),
        ("abc", 7),
        ("0", 7),
        ("-3", 7),
        ("4", 4),
        (" 12 ", 12),
    ],
)
def test_parse_positive_int_defaults_invalid_values(raw, expected):
    assert parse_positive_int(raw, 7) == expected


@pytest.mark.parametrize("raw", ["9223372036854775808", "99999999999999999999"])
def test_parse_positive_int_rejects_values_beyond_bigint(raw):
    assert parse_positive_int(raw, 7) == 7


def test_parse_positive_int_accepts_bigint_max():
    assert parse_positive_int(str(MAX_VALUE), 7) == MAX_VALUE


def test_huge_page_has_no_verses():
    assert paginate_verses(LYRICS, MAX_VALUE, MAX_VALUE) == []
