import pytest

from salon_booking.services.time_interval import (
    DEFAULT_DURATION_MINUTES,
    LEGACY_DURATION_MINUTES,
    derive_end,
    format_minutes,
    overlaps,
    parse_end_time,
    parse_time,
)


@pytest.mark.parametrize("text, expected", [
    ("09:00", 540),
    ("9:05", 545),
    ("00:00", 0),
    ("23:59", 1439),
    ("10:30:45", 630),  # seconds are dropped
    (" 12:15 ", 735),
])
def test_parse_time_valid(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", [None, "", "0900", "9", "ab:cd", "10:xx", "-1:00", "24:00", "12:60", "1:2:3:4", 900])
def test_parse_time_malformed_returns_none(text):
    assert parse_time(text) is None


@pytest.mark.parametrize("text, expected", [
    ("24:00", 1440),
    ("24:00:00", 1440),
    ("18:30", 1110),
    ("24:30", None),
    ("25:00", None),
    (None, None),
])
def test_parse_end_time_accepts_end_of_day(text, expected):
    assert parse_end_time(text) == expected


def test_derive_end_and_defaults():
    assert derive_end(540) == 600
    assert derive_end(540, 90) == 630
    assert DEFAULT_DURATION_MINUTES == 60
    assert LEGACY_DURATION_MINUTES == 30


def test_overlap_is_half_open():
    # 09:00-10:00 vs 10:00-11:00 touch but do not overlap
    assert overlaps(540, 600, 600, 660) is False
    assert overlaps(600, 660, 540, 600) is False
    # 09:00-10:00 vs 09:30-10:30
    assert overlaps(540, 600, 570, 630) is True
    # containment
    assert overlaps(540, 720, 600, 630) is True


def test_overlap_is_symmetric():
    intervals = [(540, 600), (570, 630), (600, 660), (480, 720), (0, 30), (700, 701)]
    for a in intervals:
        for b in intervals:
            assert overlaps(*a, *b) == overlaps(*b, *a)


def test_format_minutes():
    assert format_minutes(540) == "09:00"
    assert format_minutes(1439) == "23:59"
    assert format_minutes(None) is None
