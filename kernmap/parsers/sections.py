"""
Section Resolver
=================

Turns (start tag, size tag) pairs of the dynamic table into named
sections and attaches them to the layout under construction.
"""

from __future__ import annotations

from kernmap.core.models import DynamicTable
from kernmap.parsers.dynamic import DynamicTag
from kernmap.parsers.layout import LayoutBuilder

REASON_MISSING_TAG = "missing tag"

DYNAMIC_SECTION_NAME = ".dynamic"

# (start tag, size tag, section name), attached in this order
DYNAMIC_SECTIONS: tuple[tuple[DynamicTag, DynamicTag, str], ...] = (
    (DynamicTag.DT_STRTAB, DynamicTag.DT_STRSZ, ".dynstr"),
    (DynamicTag.DT_INIT_ARRAY, DynamicTag.DT_INIT_ARRAYSZ, ".init_array"),
    (DynamicTag.DT_FINI_ARRAY, DynamicTag.DT_FINI_ARRAYSZ, ".fini_array"),
    (DynamicTag.DT_RELA, DynamicTag.DT_RELASZ, ".rela.dyn"),
    (DynamicTag.DT_REL, DynamicTag.DT_RELSZ, ".rel.dyn"),
    (DynamicTag.DT_JMPREL, DynamicTag.DT_PLTRELSZ, ".rela.plt"),
)


class SectionResolver:
    """Attach the dynamic table and the sections it describes.

    Usage::

        SectionResolver(builder).resolve(table)
    """

    def __init__(self, builder: LayoutBuilder) -> None:
        self._builder = builder

    def resolve(self, table: DynamicTable) -> None:
        self._builder.add_section(DYNAMIC_SECTION_NAME, table.offset, table.size)

        for start_tag, size_tag, name in DYNAMIC_SECTIONS:
            start = table.first(start_tag)
            size = table.first(size_tag)
            if start is None or size is None:
                self._builder.drop_section(name, REASON_MISSING_TAG, start, size)
                continue
            self._builder.add_section(name, start, size)
