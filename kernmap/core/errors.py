"""
Kernmap Errors
===============

Every fatal condition raised while parsing a kernel image derives from
:class:`KernelParseError`, so callers can treat "the parse failed" as a
single outcome while still telling the individual causes apart.
"""

from __future__ import annotations


class KernelParseError(Exception):
    """The kernel image could not be parsed.  No partial result exists."""


class ByteSourceUnderflowError(KernelParseError):
    """A read request extends past the end of the image."""

    def __init__(self, offset: int, length: int, available: int) -> None:
        self.offset = offset
        self.length = length
        self.available = available
        super().__init__(
            f"Read of {length:#x} bytes at offset {offset:#x} exceeds "
            f"image size {available:#x}"
        )


class MapNotFoundError(KernelParseError):
    """No offset in the scan window holds an acceptable kernel map."""

    def __init__(self, window_size: int) -> None:
        self.window_size = window_size
        super().__init__(
            f"No valid kernel map found in the first {window_size:#x} bytes"
        )


class OverlappingSegmentsError(KernelParseError):
    """Two top-level segments of one layout intersect."""

    def __init__(self, new: str, existing: str) -> None:
        self.new = new
        self.existing = existing
        super().__init__(f"Segment {new} overlaps segment {existing}")
