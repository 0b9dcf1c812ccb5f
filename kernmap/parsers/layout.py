"""
Layout Builder
===============

Accumulates the top-level segments of one kernel layout and attaches
named sections to the segment that fully contains them.

A builder is created per parse and handed from step to step; nothing is
shared between parses.
"""

from __future__ import annotations

import logging
from typing import Optional

from kernmap.core.errors import OverlappingSegmentsError
from kernmap.core.models import (
    DroppedSection,
    KernelMap,
    Section,
    Segment,
    SegmentKind,
)

logger = logging.getLogger("kernmap.parsers.layout")

REASON_EMPTY = "empty"
REASON_NOT_CONTAINED = "not contained in a single segment"


class LayoutBuilder:
    """Layout under construction.

    Usage::

        builder = LayoutBuilder()
        builder.add_segment(0, 0x1000, ".text", SegmentKind.CODE)
        builder.add_section(".init_array", 0x200, 0x10)
        segments = builder.segments
    """

    def __init__(self) -> None:
        self._segments: list[Segment] = []
        self._dropped: list[DroppedSection] = []

    @property
    def segments(self) -> list[Segment]:
        return self._segments

    @property
    def dropped_sections(self) -> list[DroppedSection]:
        return self._dropped

    def build(self) -> tuple[list[Segment], list[DroppedSection]]:
        """Return the segments in insertion order and the dropped sections."""
        return list(self._segments), list(self._dropped)

    # ------------------------------------------------------------------ #
    #  Segments
    # ------------------------------------------------------------------ #

    def add_segment(
        self,
        start: int,
        size: int,
        name: str,
        kind: SegmentKind,
    ) -> Segment:
        """Add a segment, refusing any inclusive-range overlap.

        Raises:
            OverlappingSegmentsError: *start*..*start+size-1* intersects an
                existing segment.
        """
        segment = Segment(name=name, kind=kind, start=start, size=size)
        for other in self._segments:
            if segment.overlaps(other):
                raise OverlappingSegmentsError(name, other.name)
        self._segments.append(segment)
        return segment

    def add_kernel_segments(self, kernel_map: KernelMap) -> int:
        """Add the text/rodata/data/bss segments described by *kernel_map*.

        Returns:
            The flat size of the image, i.e. the end of the data segment.
        """
        data_size = kernel_map.data_end - kernel_map.data_start

        self.add_segment(
            kernel_map.text_start,
            kernel_map.text_end - kernel_map.text_start,
            ".text",
            SegmentKind.CODE,
        )
        self.add_segment(
            kernel_map.rodata_start,
            kernel_map.rodata_end - kernel_map.rodata_start,
            ".rodata",
            SegmentKind.CONST,
        )
        self.add_segment(
            kernel_map.data_start,
            data_size,
            ".data",
            SegmentKind.DATA,
        )
        self.add_segment(
            kernel_map.bss_start,
            kernel_map.bss_end - kernel_map.bss_start,
            ".bss",
            SegmentKind.BSS,
        )
        return kernel_map.data_start + data_size

    # ------------------------------------------------------------------ #
    #  Sections
    # ------------------------------------------------------------------ #

    def add_section(self, name: str, start: int, size: int) -> Optional[Segment]:
        """Attach a section to the first segment that fully contains it.

        Sections that are empty or that no single segment contains are
        recorded in :attr:`dropped_sections` and otherwise ignored.

        Returns:
            The owning segment, or ``None`` if the section was dropped.
        """
        if size <= 0:
            return self.drop_section(name, REASON_EMPTY, start, size)

        section = Section(name=name, start=start, size=size)
        for segment in self._segments:
            if segment.contains(section.start, section.end):
                segment.sections.append(section)
                logger.debug(
                    "Attached %s [%#x, %#x] to %s",
                    name, section.start, section.end, segment.name,
                )
                return segment

        return self.drop_section(name, REASON_NOT_CONTAINED, start, size)

    def drop_section(
        self,
        name: str,
        reason: str,
        start: Optional[int] = None,
        size: Optional[int] = None,
    ) -> None:
        logger.debug("Dropped section %s: %s", name, reason)
        self._dropped.append(
            DroppedSection(name=name, start=start, size=size, reason=reason)
        )
        return None
