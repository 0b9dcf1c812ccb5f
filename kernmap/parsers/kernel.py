"""
Kernel Image Parser
====================

Recovers the structure of a raw, headerless kernel image:

    1. Locate the kernel map in the first bytes of the image.
    2. Build the text / rodata / data / bss segments it describes.
    3. Parse the dynamic table rooted at the map's dynamic offset.
    4. Attach the dynamic table and the sections it names to their
       owning segments.

The parse is a pure function of the image bytes.  It either returns a
complete :class:`KernelLayout` or raises a :class:`KernelParseError`.
"""

from __future__ import annotations

import logging

from kernmap.core.models import KernelLayout
from kernmap.parsers.byte_source import ByteSource
from kernmap.parsers.dynamic import DynamicTableParser
from kernmap.parsers.layout import LayoutBuilder
from kernmap.parsers.map_scanner import DEFAULT_SCAN_WINDOW, MapScanner
from kernmap.parsers.sections import SectionResolver

logger = logging.getLogger("kernmap.parsers.kernel")


def parse_kernel(
    source: ByteSource | bytes,
    *,
    scan_window: int = DEFAULT_SCAN_WINDOW,
) -> KernelLayout:
    """Parse a raw kernel image into its segment/section layout.

    Args:
        source: The image, as a :class:`ByteSource` or raw bytes.
        scan_window: Number of leading bytes searched for the kernel map.

    Returns:
        The recovered layout.

    Raises:
        MapNotFoundError: No kernel map in the scan window.
        OverlappingSegmentsError: The accepted map describes overlapping
            segments.
        ByteSourceUnderflowError: A required read ran past the image end.
    """
    if not isinstance(source, ByteSource):
        source = ByteSource(source)

    kernel_map = MapScanner(source, scan_window).scan()

    builder = LayoutBuilder()
    flat_size = builder.add_kernel_segments(kernel_map)

    table = DynamicTableParser(source).parse(kernel_map.dynamic_offset, flat_size)
    SectionResolver(builder).resolve(table)

    segments, dropped = builder.build()
    logger.debug(
        "Kernel layout: %s map at %#x, %d sections attached, %d dropped",
        kernel_map.variant.value,
        kernel_map.offset,
        sum(len(seg.sections) for seg in segments),
        len(dropped),
    )

    return KernelLayout(
        map_offset=kernel_map.offset,
        variant=kernel_map.variant,
        flat_size=flat_size,
        segments=segments,
        dynamic=table,
        dropped_sections=dropped,
    )
