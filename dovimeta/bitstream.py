"""Bit-level reading and writing of big-endian (MSB first) bitstreams."""

from __future__ import annotations

_MAX_UE_LEADING_ZEROS = 63


class BitstreamError(ValueError):
    """Raised when a bitstream cannot be read as requested."""


class BitReader:
    """Reads bits, fixed-width integers and Exp-Golomb codes from bytes."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._size = len(self._data) * 8

    def read_bit(self) -> bool:
        """Read a single bit."""
        if self._pos >= self._size:
            raise BitstreamError("Attempted to read past the end of the bitstream")
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bool(bit)

    def read_bits(self, n: int) -> int:
        """Read an unsigned integer stored in ``n`` bits, MSB first."""
        if n < 0:
            raise ValueError("Bit count must not be negative")
        if n > self.available():
            raise BitstreamError(
                f"Cannot read {n} bits, only {self.available()} available"
            )
        value = 0
        for _ in range(n):
            value = (value << 1) | int(self.read_bit())
        return value

    def read_ue(self) -> int:
        """Read an unsigned Exp-Golomb coded integer."""
        leading_zeros = 0
        while not self.read_bit():
            leading_zeros += 1
            if leading_zeros > _MAX_UE_LEADING_ZEROS:
                raise BitstreamError("Invalid Exp-Golomb code: too many leading zeros")
        return (1 << leading_zeros) - 1 + self.read_bits(leading_zeros)

    def is_aligned(self) -> bool:
        """Whether the read position is on a byte boundary."""
        return self._pos % 8 == 0

    def available(self) -> int:
        """Number of bits left to read."""
        return self._size - self._pos


class BitWriter:
    """Accumulates bits MSB first and produces the resulting bytes."""

    def __init__(self) -> None:
        self._bytes = bytearray()
        self._current = 0
        self._pending = 0

    def write_bit(self, bit: bool | int) -> None:
        """Append a single bit."""
        self._current = (self._current << 1) | (1 if bit else 0)
        self._pending += 1
        if self._pending == 8:
            self._bytes.append(self._current)
            self._current = 0
            self._pending = 0

    def write_bits(self, value: int, n: int) -> None:
        """Append the low ``n`` bits of ``value``, MSB first.

        Negative values are written in two's complement form.
        """
        if n < 0:
            raise ValueError("Bit count must not be negative")
        value &= (1 << n) - 1
        for shift in reversed(range(n)):
            self.write_bit((value >> shift) & 1)

    def write_ue(self, value: int) -> None:
        """Append ``value`` as an unsigned Exp-Golomb code."""
        if value < 0:
            raise ValueError("Exp-Golomb codes cannot represent negative values")
        code = value + 1
        width = code.bit_length()
        self.write_bits(0, width - 1)
        self.write_bits(code, width)

    def is_aligned(self) -> bool:
        """Whether the written data ends on a byte boundary."""
        return self._pending == 0

    def to_bytes(self) -> bytes:
        """The written bits, with a partial last byte padded by zero bits."""
        if self._pending:
            return bytes(self._bytes) + bytes(
                [self._current << (8 - self._pending)]
            )
        return bytes(self._bytes)