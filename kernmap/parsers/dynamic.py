"""
Dynamic Table Parser
=====================

Walks the tag/value table rooted at the kernel map's dynamic offset.

Each entry is sixteen bytes: a 64-bit tag followed by a 64-bit value.
The walk stops after a ``DT_NULL`` entry or once the entries would run
past the end of the data segment, whichever comes first.

``DT_NEEDED`` may legitimately occur many times and keeps every value in
table order.  For every other tag a later entry replaces an earlier one.

References:
    - System V Application Binary Interface, Edition 4.1, "Dynamic Section".
"""

from __future__ import annotations

import enum
import logging

from kernmap.core.models import DynamicTable
from kernmap.parsers.byte_source import ByteSource

logger = logging.getLogger("kernmap.parsers.dynamic")


# ---------------------------------------------------------------------------
# Dynamic tags
# ---------------------------------------------------------------------------

class DynamicTag(enum.IntEnum):
    DT_NULL = 0
    DT_NEEDED = 1
    DT_PLTRELSZ = 2
    DT_PLTGOT = 3
    DT_HASH = 4
    DT_STRTAB = 5
    DT_SYMTAB = 6
    DT_RELA = 7
    DT_RELASZ = 8
    DT_RELAENT = 9
    DT_STRSZ = 10
    DT_SYMENT = 11
    DT_INIT = 12
    DT_FINI = 13
    DT_SONAME = 14
    DT_RPATH = 15
    DT_SYMBOLIC = 16
    DT_REL = 17
    DT_RELSZ = 18
    DT_RELENT = 19
    DT_PLTREL = 20
    DT_DEBUG = 21
    DT_TEXTREL = 22
    DT_JMPREL = 23
    DT_BIND_NOW = 24
    DT_INIT_ARRAY = 25
    DT_FINI_ARRAY = 26
    DT_INIT_ARRAYSZ = 27
    DT_FINI_ARRAYSZ = 28
    DT_RUNPATH = 29
    DT_FLAGS = 30


MULTI_VALUED_TAGS: frozenset[int] = frozenset({DynamicTag.DT_NEEDED})

DYNAMIC_ENTRY_SIZE: int = 0x10
EMPTY_STRING_TABLE: str = "\x00"


def tag_name(tag: int) -> str:
    """Symbolic name for *tag*, or its hex value when unknown."""
    try:
        return DynamicTag(tag).name
    except ValueError:
        return f"{tag:#x}"


# ---------------------------------------------------------------------------
# DynamicTableParser
# ---------------------------------------------------------------------------

class DynamicTableParser:
    """Parse the dynamic table of a kernel image.

    Usage::

        table = DynamicTableParser(source).parse(dynamic_offset, flat_size)
        strtab = table.first(DynamicTag.DT_STRTAB)

    Args:
        source: The image.
    """

    def __init__(self, source: ByteSource) -> None:
        self._source = source

    def parse(self, dynamic_offset: int, flat_size: int) -> DynamicTable:
        """Read entries from *dynamic_offset* up to at most *flat_size*.

        Returns:
            The tag map, the table's end cursor and the string table.

        Raises:
            ByteSourceUnderflowError: An entry or the string table lies
                past the end of the image.
        """
        entries: dict[int, list[int]] = {int(tag): [] for tag in MULTI_VALUED_TAGS}
        max_entries = max(flat_size - dynamic_offset, 0) // DYNAMIC_ENTRY_SIZE

        cursor = dynamic_offset
        for _ in range(max_entries):
            tag = self._source.read_u64(cursor)
            value = self._source.read_u64(cursor + 8)
            cursor += DYNAMIC_ENTRY_SIZE

            if tag == DynamicTag.DT_NULL:
                break

            if tag in MULTI_VALUED_TAGS:
                entries[tag].append(value)
            else:
                entries[tag] = [value]

        logger.debug(
            "Dynamic table [%#x, %#x): %d tags",
            dynamic_offset, cursor, len(entries),
        )

        return DynamicTable(
            offset=dynamic_offset,
            end=cursor,
            entries=entries,
            string_table=self._read_string_table(entries),
        )

    def _read_string_table(self, entries: dict[int, list[int]]) -> str:
        strtab = entries.get(DynamicTag.DT_STRTAB)
        strsz = entries.get(DynamicTag.DT_STRSZ)
        if not strtab or not strsz:
            return EMPTY_STRING_TABLE
        return self._source.read_ascii(strtab[0], strsz[0])
