"""
Byte Source
============

Random-access, little-endian reader over a raw kernel image.

All reads are bounds-checked against the image size; a read that would
run past the end raises :class:`ByteSourceUnderflowError` instead of
returning short data, so a truncated image can never yield a partially
decoded structure.
"""

from __future__ import annotations

import struct
from pathlib import Path

from kernmap.core.errors import ByteSourceUnderflowError

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteSource:
    """Read-only view over the bytes of a kernel image.

    Usage::

        source = ByteSource(raw_bytes)
        magic = source.read_u32(0x3100)
        blob = source.read_bytes(0, 0x2000)

    The source never copies or mutates the buffer it wraps and has no
    resources of its own to close.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = memoryview(data).cast("B") if not isinstance(data, bytes) else data

    @classmethod
    def from_path(cls, path: str | Path) -> ByteSource:
        """Load an entire image file into a new source."""
        return cls(Path(path).read_bytes())

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # ------------------------------------------------------------------ #
    #  Reads
    # ------------------------------------------------------------------ #

    def _check(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise ByteSourceUnderflowError(offset, length, len(self._data))

    def read_bytes(self, offset: int, length: int) -> bytes:
        """Return *length* raw bytes starting at *offset*."""
        self._check(offset, length)
        return bytes(self._data[offset:offset + length])

    def read_u32(self, offset: int) -> int:
        self._check(offset, 4)
        return _U32.unpack_from(self._data, offset)[0]

    def read_u64(self, offset: int) -> int:
        self._check(offset, 8)
        return _U64.unpack_from(self._data, offset)[0]

    def read_ascii(self, offset: int, length: int) -> str:
        """Decode *length* bytes at *offset* as ASCII.

        Non-ASCII bytes are replaced rather than rejected; the string table
        is captured verbatim and not interpreted.
        """
        return self.read_bytes(offset, length).decode("ascii", errors="replace")
