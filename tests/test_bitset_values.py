import pytest

from bitset import Bitset, OutOfRangeError, RangeTooWideError


def test_set_val_scenario(empty80):
    empty80.set_val(1, 10, 511)
    assert empty80.get_byte(0) == 63
    assert empty80.get_byte(9) == 224

    empty80.set_val(6, 8, 0)
    assert empty80.get_byte(0) == 60
    assert empty80.get_byte(9) == 224 - 128


def test_set_val_truncates_to_width(empty80):
    empty80.set_val(0, 8, 0xFFFFFFFF)
    assert empty80.get_byte(0) == 255
    assert empty80.get_byte(8) == 128
    assert empty80.get_byte(16) == 0


def test_get_val_windows(empty80):
    empty80.set_val(0, 8, 0xFFFFFFFF)
    assert empty80.get_val(0, 8) == 511
    assert empty80.get_val(0, 3) == 15
    assert empty80.get_val(0, 0) == 1
    assert empty80.get_val(1, 8) == 255
    assert empty80.get_val(7, 8) == 3
    assert empty80.get_val(8, 8) == 1
    assert empty80.get_val(8, 39) == 2147483648


def test_get_val_reversed_bounds(empty80):
    empty80.set_val(0, 8, 0xFFFFFFFF)
    assert empty80.get_val(8, 0) == 511


def test_full_width_aligned_round_trip(empty80):
    empty80.set_val(16, 47, 0xFFFFFFFF)
    assert empty80.get_val(16, 47) == 0xFFFFFFFF
    assert empty80.get_byte(8) == 0
    assert empty80.get_byte(48) == 0


def test_full_width_unaligned_spans_five_bytes(empty80):
    empty80.set_val(4, 35, 0xDEADBEEF)
    assert empty80.get_val(4, 35) == 0xDEADBEEF
    data = empty80.get_bytes()
    assert data[:5] == bytes([0x0D, 0xEA, 0xDB, 0xEE, 0xF0])


def test_set_val_preserves_neighbouring_bits(full80):
    full80.set_val(3, 12, 0)
    assert full80.get_byte(0) == 0b11100000
    assert full80.get_byte(8) == 0b00000111
    assert full80.get_setbit_count() == 640 - 10


@pytest.mark.parametrize(
    "start, end, value",
    [
        (0, 0, 1),
        (5, 5, 0),
        (3, 9, 0x55),
        (7, 8, 2),
        (13, 44, 0x12345678),
        (100, 131, 0xFFFFFFFF),
        (601, 632, 0x80000001),
        (608, 639, 0xCAFEBABE),
        (20, 40, 0x1FFFFF),
        (0, 31, 0),
    ],
)
def test_set_val_get_val_round_trip(start, end, value):
    bs = Bitset(80)
    bs.set_all()
    bs.set_val(start, end, value)
    width = end - start + 1
    assert bs.get_val(start, end) == value & ((1 << width) - 1)


def test_round_trip_masks_oversized_values(empty80):
    empty80.set_val(10, 17, 0x1FF)
    assert empty80.get_val(10, 17) == 0xFF
    assert not empty80.is_set(9)
    assert not empty80.is_set(18)


def test_width_limit(empty80, snapshot):
    before = snapshot(empty80)
    with pytest.raises(RangeTooWideError):
        empty80.set_val(0, 32, 1)
    with pytest.raises(RangeTooWideError):
        empty80.get_val(0, 32)
    with pytest.raises(ValueError):
        empty80.set_val(100, 200, 1)
    assert snapshot(empty80) == before

    empty80.set_val(0, 31, 0xFFFFFFFF)
    assert empty80.get_val(0, 31) == 0xFFFFFFFF


def test_value_ops_out_of_range(empty80, snapshot):
    before = snapshot(empty80)
    with pytest.raises(OutOfRangeError):
        empty80.set_val(630, 640, 3)
    with pytest.raises(OutOfRangeError):
        empty80.get_val(630, 640)
    assert snapshot(empty80) == before
