import logging
import operator
from contextlib import ExitStack
from typing import Callable, Tuple

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
from rwlock import ReadWriteLock


logger = logging.getLogger(__name__)


class BitsetError(Exception):
    """Base class for bitset errors."""


class OutOfRangeError(BitsetError, IndexError):
    """A bit position or byte lies beyond the bitset capacity."""


class RangeTooWideError(BitsetError, ValueError):
    """A value operation spans more bits than :attr:`Bitset.MAX_VALUE_BITS`."""


class Bitset:
    """Thread-safe, resizable bit vector backed by a byte buffer.

    Bit ``0`` is the most-significant bit of byte ``0``; position ``p`` is
    stored in byte ``p >> 3`` at bit number ``7 - (p & 7)``. Every method
    takes the instance's :class:`ReadWriteLock`: the shared side for pure
    reads, the exclusive side for anything that mutates.

    :ivar BITS_PER_BYTE: Number of bits stored in each buffer byte.
    :type BITS_PER_BYTE: int
    :ivar MAX_VALUE_BITS: Widest span accepted by :meth:`set_val` and
                          :meth:`get_val`.
    :type MAX_VALUE_BITS: int
    :ivar _size: Number of bytes in the buffer.
    :type _size: int
    :ivar _buf: Backing storage.
    :type _buf: bytearray
    :ivar _lock: Guard for ``_size`` and ``_buf``.
    :type _lock: ReadWriteLock
    """

    BITS_PER_BYTE = 8
    MAX_VALUE_BITS = 32

    def __init__(self, size: int):
        """Create an all-zero bitset of ``size`` bytes.

        :param size: Buffer length in bytes (capacity is ``size * 8`` bits).
        :type size: int
        :raises TypeError: If ``size`` is not an integer.
        :raises ValueError: If ``size`` is negative.
        """
        self._size = self._check_size(size)
        self._buf = bytearray(self._size)
        self._lock = ReadWriteLock()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bitset":
        """Build a bitset whose content is a copy of ``data``.

        This is the inverse of :meth:`get_bytes` and uses the same layout.

        :param data: Raw buffer content.
        :type data: bytes
        :returns: New independent bitset of ``len(data)`` bytes.
        :rtype: Bitset
        """
        bitset = cls(0)
        bitset._buf = bytearray(data)
        bitset._size = len(bitset._buf)
        logger.debug(f"Loaded bitset of {bitset._size} bytes from raw data")
        return bitset

    @staticmethod
    def _check_size(size: int) -> int:
        if not isinstance(size, int):
            raise TypeError(f"Bitset size must be an int, got {type(size).__name__}")
        if size < 0:
            raise ValueError(f"Bitset size must be non-negative, got {size}")
        return size

    def __repr__(self):
        return f"{type(self).__name__}(size={self.size()})"

    def __copy__(self):
        return self.clone()

    def __deepcopy__(self, memo):
        return self.clone()

    # ------------------------------------------------------------------
    # Buffer & capacity
    # ------------------------------------------------------------------

    def resize(self, new_size: int):
        """Grow or shrink the buffer, keeping the overlapping bytes.

        Growing zero-extends; shrinking discards every bit beyond the new
        capacity.

        :param new_size: New length in bytes.
        :type new_size: int
        :returns: None
        :rtype: None
        :raises TypeError: If ``new_size`` is not an integer.
        :raises ValueError: If ``new_size`` is negative.
        """
        new_size = self._check_size(new_size)
        new_buf = bytearray(new_size)
        with self._lock.write_locked():
            keep = min(self._size, new_size)
            new_buf[:keep] = self._buf[:keep]
            old_size = self._size
            self._buf = new_buf
            self._size = new_size
        logger.debug(f"Resized bitset from {old_size} to {new_size} bytes")

    def clone(self) -> "Bitset":
        """Return an independent point-in-time copy with its own lock.

        The buffer is copied under the write lock so no writer can be
        half-way through a multi-byte update while the copy is taken.

        :returns: New bitset with identical content.
        :rtype: Bitset
        """
        with self._lock.write_locked():
            data = bytes(self._buf)
        logger.debug(f"Cloned bitset of {len(data)} bytes")
        return type(self).from_bytes(data)

    def size(self) -> int:
        """Return the buffer length in bytes."""
        with self._lock.read_locked():
            return self._size

    def get_size(self) -> int:
        return self.size()

    def get_bytes(self) -> bytes:
        """Return a copy of the raw buffer.

        :returns: ``size`` bytes, bit ``0`` in the MSB of the first byte.
        :rtype: bytes
        """
        with self._lock.read_locked():
            return bytes(self._buf)

    # ------------------------------------------------------------------
    # Single bits
    # ------------------------------------------------------------------

    def _locate(self, position: int) -> Tuple[int, int]:
        """Map ``position`` to ``(byte_index, bit_number)``.

        Must be called with the lock held.

        :raises OutOfRangeError: If the position is negative or its byte is
                                 past the end of the buffer.
        """
        byte_index = position >> 3
        if position < 0 or byte_index >= self._size:
            raise OutOfRangeError(
                f"Bit position {position} out of range for {self._size} bytes"
            )
        return byte_index, 7 - (position & 7)

    def _check_range(self, start: int, end: int):
        if start < 0 or (end >> 3) >= self._size:
            raise OutOfRangeError(
                f"Bit range {start}..{end} out of range for {self._size} bytes"
            )

    def set_bit(self, position: int) -> bool:
        """Set one bit.

        :param position: Bit position.
        :type position: int
        :returns: ``False`` without touching the buffer when ``position`` is
                  out of range, ``True`` otherwise.
        :rtype: bool
        """
        with self._lock.write_locked():
            byte_index = position >> 3
            if position < 0 or byte_index >= self._size:
                return False
            self._buf[byte_index] |= ONES[7 - (position & 7)]
            return True

    def reset_bit(self, position: int) -> bool:
        """Clear one bit; same return contract as :meth:`set_bit`."""
        with self._lock.write_locked():
            byte_index = position >> 3
            if position < 0 or byte_index >= self._size:
                return False
            self._buf[byte_index] &= ZEROS[7 - (position & 7)]
            return True

    def is_set(self, position: int) -> bool:
        """Return whether the bit at ``position`` is one.

        :raises OutOfRangeError: If ``position`` is out of range.
        """
        with self._lock.read_locked():
            byte_index, bit = self._locate(position)
            return bool(self._buf[byte_index] & ONES[bit])

    def get_byte(self, position: int) -> int:
        """Return the raw byte that holds the bit at ``position``.

        :param position: Bit position (not a byte index).
        :type position: int
        :returns: Byte value ``0..255``.
        :rtype: int
        :raises OutOfRangeError: If ``position`` is out of range.
        """
        with self._lock.read_locked():
            byte_index, _ = self._locate(position)
            return self._buf[byte_index]

    def flip(self, position: int):
        """Invert the bit at ``position``.

        :raises OutOfRangeError: If ``position`` is out of range.
        """
        with self._lock.write_locked():
            byte_index, bit = self._locate(position)
            self._buf[byte_index] ^= ONES[bit]

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    def set_range(self, start: int, end: int):
        """Set every bit in ``start..end`` (inclusive, order-insensitive).

        :raises OutOfRangeError: If the range leaves the buffer.
        """
        if start > end:
            start, end = end, start
        with self._lock.write_locked():
            self._check_range(start, end)
            for index, mask in range_masks(start, end):
                self._buf[index] |= mask

    def clear_range(self, start: int, end: int):
        """Clear every bit in ``start..end`` (inclusive, order-insensitive).

        :raises OutOfRangeError: If the range leaves the buffer.
        """
        if start > end:
            start, end = end, start
        with self._lock.write_locked():
            self._check_range(start, end)
            for index, mask in range_masks(start, end):
                self._buf[index] &= ~mask & 0xFF

    def flip_range(self, start: int, end: int):
        """Invert every bit in ``start..end`` (inclusive, order-insensitive).

        :raises OutOfRangeError: If the range leaves the buffer.
        """
        if start > end:
            start, end = end, start
        with self._lock.write_locked():
            self._check_range(start, end)
            for index, mask in range_masks(start, end):
                self._buf[index] ^= mask

    # ------------------------------------------------------------------
    # Multi-bit values
    # ------------------------------------------------------------------

    def _value_span(self, start: int, end: int) -> Tuple[int, int, int]:
        if start > end:
            start, end = end, start
        width = end - start + 1
        if width > self.MAX_VALUE_BITS:
            raise RangeTooWideError(
                f"Maximum bit range allowed for value operations is "
                f"{self.MAX_VALUE_BITS}, got {width}"
            )
        return start, end, width

    def set_val(self, start: int, end: int, value: int):
        """Store the low ``end - start + 1`` bits of ``value`` at ``start..end``.

        The value is right-aligned: its least-significant retained bit
        lands at ``end``. Bits of the two boundary bytes that fall outside
        the range are preserved.

        The packed value is pre-shifted so that its low byte lines up with
        ``end``'s byte, then written byte by byte walking backwards to
        ``start``'s byte. A span of at most 32 bits covers at most five
        bytes, which bounds the loop.

        :param start: First bit position (inclusive).
        :type start: int
        :param end: Last bit position (inclusive).
        :type end: int
        :param value: Integer whose low bits are stored.
        :type value: int
        :returns: None
        :rtype: None
        :raises RangeTooWideError: If the span exceeds 32 bits.
        :raises OutOfRangeError: If the range leaves the buffer.
        """
        start, end, width = self._value_span(start, end)
        start_byte, start_bit = start >> 3, start & 7
        end_byte, end_bit = end >> 3, end & 7

        value &= LOW_MASKS[width - 1]
        if end_bit != 7:
            value <<= 7 - end_bit

        with self._lock.write_locked():
            self._check_range(start, end)
            for index in range(end_byte, start_byte - 1, -1):
                keep = 0
                if index == start_byte and start_bit:
                    keep |= ~(0xFF >> start_bit) & 0xFF
                if index == end_byte and end_bit != 7:
                    keep |= 0xFF >> (end_bit + 1)
                current = value & 0xFF
                if keep:
                    self._buf[index] = (current & ~keep) | (self._buf[index] & keep)
                else:
                    self._buf[index] = current
                value >>= 8

    def get_val(self, start: int, end: int) -> int:
        """Pack bits ``start..end`` into a right-aligned integer.

        The bit at ``end`` becomes bit 0 of the result. Up to four bytes are
        accumulated starting from ``start``'s byte (leading bits masked
        away); a non-aligned 32-bit window reaches into a fifth byte whose
        top bits are merged in as a separate tail step.

        :param start: First bit position (inclusive).
        :type start: int
        :param end: Last bit position (inclusive).
        :type end: int
        :returns: Value in ``0 .. 2**32 - 1``.
        :rtype: int
        :raises RangeTooWideError: If the span exceeds 32 bits.
        :raises OutOfRangeError: If the range leaves the buffer.
        """
        start, end, _ = self._value_span(start, end)
        start_byte, start_bit = start >> 3, start & 7
        end_byte, end_bit = end >> 3, end & 7

        with self._lock.read_locked():
            self._check_range(start, end)
            result = 0
            offset = 0
            while True:
                result |= self._buf[start_byte + offset]
                if offset == 0 and start_bit:
                    result &= 0xFF >> start_bit
                if start_byte + offset == end_byte or offset == 3:
                    break
                offset += 1
                result <<= 8

            if start_byte + offset != end_byte:
                # fifth byte
                result <<= end_bit + 1
                result |= self._buf[end_byte] >> (7 - end_bit)
            elif end_bit != 7:
                result >>= 7 - end_bit
        return result & 0xFFFFFFFF

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def clear_all(self):
        with self._lock.write_locked():
            self._buf[:] = bytes(self._size)

    def set_all(self):
        with self._lock.write_locked():
            self._buf[:] = b"\xff" * self._size

    def is_all_zero(self) -> bool:
        with self._lock.read_locked():
            for byte in self._buf:
                if byte:
                    return False
            return True

    def is_all_set(self) -> bool:
        with self._lock.read_locked():
            for byte in self._buf:
                if byte != 0xFF:
                    return False
            return True

    def _count_set_bits(self) -> int:
        return sum(POPCOUNT[byte] for byte in self._buf)

    def get_setbit_count(self) -> int:
        """Return the number of one-bits in the whole buffer."""
        with self._lock.read_locked():
            return self._count_set_bits()

    def get_zerobit_count(self) -> int:
        """Return the number of zero-bits, derived from the one-bit count."""
        with self._lock.read_locked():
            return self._size * self.BITS_PER_BYTE - self._count_set_bits()

    # ------------------------------------------------------------------
    # Boolean combination
    # ------------------------------------------------------------------

    def _combine(self, other: "Bitset", op: Callable[[int, int], int]):
        """Apply ``op`` byte-wise over the common prefix of both buffers.

        The receiver is locked for writing and ``other`` for reading. Both
        locks are always taken in ``id()`` order, so ``a.and_(b)`` racing
        with ``b.or_(a)`` cannot deadlock.

        :param other: Operand bitset; only read.
        :type other: Bitset
        :param op: Binary byte operator.
        :type op: Callable[[int, int], int]
        :raises TypeError: If ``other`` is not a :class:`Bitset`.
        """
        if not isinstance(other, Bitset):
            raise TypeError(
                f"Expected a Bitset operand, got {type(other).__name__}"
            )
        if other is self:
            with self._lock.write_locked():
                for index in range(self._size):
                    self._buf[index] = op(self._buf[index], self._buf[index])
            return

        ordered = sorted((self, other), key=id)
        with ExitStack() as stack:
            for bitset in ordered:
                if bitset is self:
                    stack.enter_context(self._lock.write_locked())
                else:
                    stack.enter_context(other._lock.read_locked())
            buf, src = self._buf, other._buf
            for index in range(min(self._size, other._size)):
                buf[index] = op(buf[index], src[index])

    def and_(self, other: "Bitset"):
        """In-place AND with ``other`` over the overlapping bytes."""
        self._combine(other, operator.and_)

    def or_(self, other: "Bitset"):
        """In-place OR with ``other`` over the overlapping bytes."""
        self._combine(other, operator.or_)

    def xor(self, other: "Bitset"):
        """In-place XOR with ``other`` over the overlapping bytes."""
        self._combine(other, operator.xor)

    def __iand__(self, other):
        if not isinstance(other, Bitset):
            return NotImplemented
        self.and_(other)
        return self

    def __ior__(self, other):
        if not isinstance(other, Bitset):
            return NotImplemented
        self.or_(other)
        return self

    def __ixor__(self, other):
        if not isinstance(other, Bitset):
            return NotImplemented
        self.xor(other)
        return self

    # ------------------------------------------------------------------
    # Bit scans
    # ------------------------------------------------------------------

    def _scan_forward(self, position: int, table: Tuple[int, ...], ones: bool) -> int:
        """Find the first bit at or after ``position`` that ``table`` accepts.

        Bits before ``position`` in its own byte are masked so they can never
        match: forced to zero when looking for ones, to one when looking
        for zeros.

        :param position: Inclusive start position.
        :type position: int
        :param table: :data:`LEFTMOST_ONE` or :data:`LEFTMOST_ZERO`.
        :type table: Tuple[int, ...]
        :param ones: ``True`` when scanning for one-bits.
        :type ones: bool
        :returns: Bit position, or ``-1`` if no such bit exists.
        :rtype: int
        :raises OutOfRangeError: If ``position`` is out of range.
        """
        with self._lock.read_locked():
            first_byte, _ = self._locate(position)
            tail = 0xFF >> (position & 7)
            if ones:
                byte = self._buf[first_byte] & tail
            else:
                byte = self._buf[first_byte] | (~tail & 0xFF)
            if table[byte] != NO_BIT:
                return (first_byte << 3) + 7 - table[byte]

            for index in range(first_byte + 1, self._size):
                bit = table[self._buf[index]]
                if bit != NO_BIT:
                    return (index << 3) + 7 - bit
        return -1

    def _scan_backward(self, position: int, table: Tuple[int, ...], ones: bool) -> int:
        """Find the last bit strictly before ``position`` that ``table`` accepts.

        :param position: Exclusive upper bound; ``size * 8`` is allowed.
        :type position: int
        :param table: :data:`RIGHTMOST_ONE` or :data:`RIGHTMOST_ZERO`.
        :type table: Tuple[int, ...]
        :param ones: ``True`` when scanning for one-bits.
        :type ones: bool
        :returns: Bit position, or ``-1`` if no such bit exists.
        :rtype: int
        :raises OutOfRangeError: If ``position - 1`` is out of range.
        """
        if position == 0:
            return -1
        with self._lock.read_locked():
            last = position - 1
            first_byte, _ = self._locate(last)
            head = (0xFF << (7 - (last & 7))) & 0xFF
            if ones:
                byte = self._buf[first_byte] & head
            else:
                byte = self._buf[first_byte] | (~head & 0xFF)
            if table[byte] != NO_BIT:
                return (first_byte << 3) + 7 - table[byte]

            for index in range(first_byte - 1, -1, -1):
                bit = table[self._buf[index]]
                if bit != NO_BIT:
                    return (index << 3) + 7 - bit
        return -1

    def get_next_set_bit(self, position: int) -> int:
        """Return the first one-bit at or after ``position``, or ``-1``."""
        return self._scan_forward(position, LEFTMOST_ONE, True)

    def get_next_zero_bit(self, position: int) -> int:
        """Return the first zero-bit at or after ``position``, or ``-1``."""
        return self._scan_forward(position, LEFTMOST_ZERO, False)

    def get_prev_set_bit(self, position: int) -> int:
        """Return the last one-bit strictly before ``position``, or ``-1``."""
        return self._scan_backward(position, RIGHTMOST_ONE, True)

    def get_prev_zero_bit(self, position: int) -> int:
        """Return the last zero-bit strictly before ``position``, or ``-1``."""
        return self._scan_backward(position, RIGHTMOST_ZERO, False)
