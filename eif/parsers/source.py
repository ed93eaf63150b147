"""
Random-Access Byte Source
==========================

Thin adapter giving the section walker the two primitives it needs --
absolute ``seek`` and exact-length ``read`` -- over any seekable binary
stream (an open file, :class:`io.BytesIO`, ...).

The adapter never closes the stream it wraps: whoever opened the file
owns it.
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO

from eif.core.errors import TruncatedInputError


class ByteSource:
    """Seek-then-read access to a seekable binary stream.

    Seeking is bounded by the stream size measured at construction time.
    A request beyond the end (or a negative one) leaves the position at
    the nearest reachable offset and returns it, so the caller can compare
    the requested and actual positions.

    Usage::

        with open(path, "rb") as fh:
            source = ByteSource(fh)
            if source.seek(offset) != offset:
                ...
            header = source.read_exact(12)
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        start = stream.tell()
        self._size = stream.seek(0, os.SEEK_END)
        stream.seek(start)
        self._pos = start

    @classmethod
    def from_bytes(cls, data: bytes) -> ByteSource:
        """Wrap an in-memory buffer."""
        return cls(io.BytesIO(data))

    @property
    def size(self) -> int:
        return self._size

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return max(self._size - self._pos, 0)

    def seek(self, offset: int) -> int:
        """Move to absolute *offset* and return the position actually reached."""
        target = min(max(offset, 0), self._size)
        self._pos = self._stream.seek(target, os.SEEK_SET)
        return self._pos

    def read_exact(self, size: int) -> bytes:
        """Read exactly *size* bytes from the current position.

        Raises:
            TruncatedInputError: If fewer than *size* bytes remain.  Nothing
                is read in that case, so oversized requests never allocate.
        """
        available = self.remaining
        if size > available:
            raise TruncatedInputError(
                f"need {size} bytes at offset {self._pos}, only {available} available",
                expected=size,
                got=available,
            )
        data = self._stream.read(size)
        self._pos += len(data)
        if len(data) != size:
            raise TruncatedInputError(
                f"short read at offset {self._pos - len(data)}: "
                f"wanted {size}, got {len(data)}",
                expected=size,
                got=len(data),
            )
        return data
