"""
Kernmap Parsers
================

The kernel image parsing pipeline, leaf first:

- ``byte_source``  -- bounds-checked little-endian reader
- ``map_scanner``  -- kernel map search (legacy and modern descriptors)
- ``layout``       -- segment accumulation and section attachment
- ``dynamic``      -- dynamic tag/value table walk
- ``sections``     -- dynamic-table-backed section resolution
- ``kernel``       -- the end-to-end ``parse_kernel`` entry point
"""

from kernmap.parsers.byte_source import ByteSource
from kernmap.parsers.dynamic import DynamicTableParser, DynamicTag
from kernmap.parsers.kernel import parse_kernel
from kernmap.parsers.layout import LayoutBuilder
from kernmap.parsers.map_scanner import MapScanner, is_valid_kernel_map
from kernmap.parsers.sections import SectionResolver

__all__ = [
    "ByteSource",
    "DynamicTableParser",
    "DynamicTag",
    "LayoutBuilder",
    "MapScanner",
    "SectionResolver",
    "is_valid_kernel_map",
    "parse_kernel",
]
