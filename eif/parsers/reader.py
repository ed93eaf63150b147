"""
Big-Endian Field Reader
========================

Bounds-checked cursor over a byte buffer used by the EIF decoders.  All
EIF integers are stored most-significant byte first; every read consumes
exactly the field's fixed width so that later offsets stay aligned with
the on-disk layout.
"""

from __future__ import annotations

import struct

from eif.core.errors import TruncatedInputError

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


class BigEndianReader:
    """Sequential reader over *data* starting at *offset*.

    Usage::

        reader = BigEndianReader(buf)
        magic = reader.raw(4)
        version = reader.u16()
        offsets = reader.u64_array(32)

    Any read past the end of the buffer raises
    :class:`~eif.core.errors.TruncatedInputError` instead of returning a
    short value.
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = memoryview(data)
        self._pos = offset

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return max(len(self._data) - self._pos, 0)

    def _take(self, size: int) -> memoryview:
        if size > self.remaining:
            raise TruncatedInputError(
                f"need {size} bytes at offset {self._pos}, "
                f"only {self.remaining} available",
                expected=size,
                got=self.remaining,
            )
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def raw(self, size: int) -> bytes:
        return bytes(self._take(size))

    def u16(self) -> int:
        return _U16.unpack(self._take(_U16.size))[0]

    def u32(self) -> int:
        return _U32.unpack(self._take(_U32.size))[0]

    def u64(self) -> int:
        return _U64.unpack(self._take(_U64.size))[0]

    def u64_array(self, count: int) -> tuple[int, ...]:
        """Read *count* consecutive big-endian u64 values."""
        chunk = self._take(_U64.size * count)
        return struct.unpack(f">{count}Q", chunk)


def pack_u16(value: int) -> bytes:
    return _U16.pack(value)


def pack_u32(value: int) -> bytes:
    return _U32.pack(value)


def pack_u64(value: int) -> bytes:
    return _U64.pack(value)


def pack_u64_array(values: tuple[int, ...] | list[int]) -> bytes:
    return struct.pack(f">{len(values)}Q", *values)
