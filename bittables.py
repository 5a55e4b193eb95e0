"""Precomputed byte-level lookup tables shared by every bitset.

All tables are built once at import time and stored as tuples, so they are
read-only for the life of the process.

Bit numbers inside a byte are counted from the least-significant bit
(``0``) to the most-significant bit (``7``). A bitset position ``p`` lives in
byte ``p >> 3`` at bit number ``7 - (p & 7)``.
"""

from typing import Tuple

#: Sentinel stored in the scan tables when a byte has no qualifying bit.
NO_BIT = 8


def _build_ones() -> Tuple[int, ...]:
    """Single-bit masks indexed by in-byte bit number.

    :returns: ``ONES[i] == 1 << i`` for ``i`` in ``0..7``.
    :rtype: Tuple[int, ...]
    """
    return tuple(1 << i for i in range(8))


def _build_low_masks() -> Tuple[int, ...]:
    """Right-aligned masks of ``n + 1`` one-bits for ``n`` in ``0..31``.

    :returns: ``LOW_MASKS[n] == (1 << (n + 1)) - 1``.
    :rtype: Tuple[int, ...]
    """
    return tuple((1 << (n + 1)) - 1 for n in range(32))


def _build_popcount() -> Tuple[int, ...]:
    """Number of one-bits for every byte value.

    Each entry reuses the count of the value shifted right by one, so the
    table is filled in a single pass.

    :returns: 256-entry popcount table.
    :rtype: Tuple[int, ...]
    """
    counts = [0] * 256
    for value in range(1, 256):
        counts[value] = (value & 1) + counts[value >> 1]
    return tuple(counts)


def _build_scan_tables():
    """Build the four first-bit tables used by the bit-scan routines.

    ``leftmost_one[b]`` is the bit number of the highest one-bit of ``b``
    (the first one met when reading the byte left to right),
    ``rightmost_one[b]`` the lowest one-bit, and the ``*_zero`` tables the
    same for zero-bits. Missing bits map to :data:`NO_BIT`.

    :returns: ``(leftmost_one, leftmost_zero, rightmost_one, rightmost_zero)``.
    :rtype: Tuple[Tuple[int, ...], ...]
    """
    leftmost_one = [NO_BIT] * 256
    leftmost_zero = [NO_BIT] * 256
    rightmost_one = [NO_BIT] * 256
    rightmost_zero = [NO_BIT] * 256

    for value in range(256):
        for bit in range(7, -1, -1):
            if value & (1 << bit):
                if leftmost_one[value] == NO_BIT:
                    leftmost_one[value] = bit
            elif leftmost_zero[value] == NO_BIT:
                leftmost_zero[value] = bit
        for bit in range(8):
            if value & (1 << bit):
                if rightmost_one[value] == NO_BIT:
                    rightmost_one[value] = bit
            elif rightmost_zero[value] == NO_BIT:
                rightmost_zero[value] = bit

    return (
        tuple(leftmost_one),
        tuple(leftmost_zero),
        tuple(rightmost_one),
        tuple(rightmost_zero),
    )


ONES = _build_ones()
ZEROS = tuple(0xFF ^ mask for mask in ONES)
LOW_MASKS = _build_low_masks()
POPCOUNT = _build_popcount()
LEFTMOST_ONE, LEFTMOST_ZERO, RIGHTMOST_ONE, RIGHTMOST_ZERO = _build_scan_tables()


def range_masks(start: int, end: int):
    """Yield ``(byte_index, mask)`` pairs covering bits ``start..end``.

    Inner bytes get a full ``0xFF`` mask; only the two boundary bytes get
    partial masks. ``start`` must not exceed ``end``.

    :param start: First bit position (inclusive).
    :type start: int
    :param end: Last bit position (inclusive).
    :type end: int
    :returns: Generator of ``(byte_index, mask)`` tuples.
    :rtype: Iterator[Tuple[int, int]]
    """
    start_byte, start_bit = start >> 3, start & 7
    end_byte, end_bit = end >> 3, end & 7
    for index in range(start_byte, end_byte + 1):
        mask = 0xFF
        if index == start_byte and start_bit:
            mask >>= start_bit
        if index == end_byte and end_bit != 7:
            mask &= (0xFF << (7 - end_bit)) & 0xFF
        yield index, mask
