import pytest

import bittables
from bittables import (
    LEFTMOST_ONE,
    LEFTMOST_ZERO,
    LOW_MASKS,
    NO_BIT,
    ONES,
    POPCOUNT,
    RIGHTMOST_ONE,
    RIGHTMOST_ZERO,
    ZEROS,
    range_masks,
)


def test_tables_are_immutable_and_sized():
    for table in (POPCOUNT, LEFTMOST_ONE, LEFTMOST_ZERO, RIGHTMOST_ONE, RIGHTMOST_ZERO):
        assert isinstance(table, tuple)
        assert len(table) == 256
    assert len(ONES) == 8 and len(ZEROS) == 8
    assert len(LOW_MASKS) == 32


def test_single_bit_masks():
    assert ONES[0] == 0x01
    assert ONES[7] == 0x80
    assert ZEROS[0] == 0xFE
    assert ZEROS[7] == 0x7F


def test_low_masks():
    assert LOW_MASKS[0] == 1
    assert LOW_MASKS[7] == 0xFF
    assert LOW_MASKS[31] == 0xFFFFFFFF


def test_popcount_matches_bin_count():
    for value in range(256):
        assert POPCOUNT[value] == bin(value).count("1")


@pytest.mark.parametrize(
    "value, left1, left0, right1, right0",
    [
        (0x00, NO_BIT, 7, NO_BIT, 0),
        (0xFF, 7, NO_BIT, 0, NO_BIT),
        (0x80, 7, 6, 7, 0),
        (0x01, 0, 7, 0, 1),
        (0x3C, 5, 7, 2, 0),
        (0xF0, 7, 3, 4, 0),
    ],
)
def test_scan_tables(value, left1, left0, right1, right0):
    assert LEFTMOST_ONE[value] == left1
    assert LEFTMOST_ZERO[value] == left0
    assert RIGHTMOST_ONE[value] == right1
    assert RIGHTMOST_ZERO[value] == right0


def test_range_masks_single_byte():
    assert list(range_masks(2, 5)) == [(0, 0b00111100)]


def test_range_masks_boundaries_and_inner_bytes():
    assert list(range_masks(20, 40)) == [
        (2, 0x0F),
        (3, 0xFF),
        (4, 0xFF),
        (5, 0x80),
    ]


def test_range_masks_aligned():
    assert list(range_masks(8, 23)) == [(1, 0xFF), (2, 0xFF)]


def test_no_bit_sentinel():
    assert bittables.NO_BIT == 8
