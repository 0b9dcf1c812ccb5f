"""
Kernmap Data Models
====================

Pydantic-based data models for the layout recovered from a raw kernel
image: the embedded kernel map descriptor, the four top-level segments
and the named sections attached to them, and the parsed dynamic table.

Ranges carry both a size and an inclusive end (``end = start + size - 1``);
containment and overlap tests are always made on inclusive ranges.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SegmentKind(str, enum.Enum):
    """Memory class of a top-level segment."""
    CODE = "CODE"
    CONST = "CONST"
    DATA = "DATA"
    BSS = "BSS"


class MapVariant(str, enum.Enum):
    """Generation of the kernel map descriptor.

    ``LEGACY`` maps are twelve 32-bit words; ``MODERN`` maps are eleven
    64-bit words with a corelocal offset and no init-array bounds.
    """
    LEGACY = "legacy"
    MODERN = "modern"


# ---------------------------------------------------------------------------
# Kernel map descriptor
# ---------------------------------------------------------------------------

class KernelMap(BaseModel):
    """A kernel map descriptor accepted by the scanner.

    Attributes:
        offset: Image offset at which the descriptor was found.
        variant: Descriptor generation.
        text_start .. dynamic_offset: Fields shared by both generations.
        init_array_start: Legacy only.
        init_array_end: Legacy only.
        corelocal_offset: Modern only.
    """
    offset: int
    variant: MapVariant
    text_start: int
    text_end: int
    rodata_start: int
    rodata_end: int
    data_start: int
    data_end: int
    bss_start: int
    bss_end: int
    ini1_offset: int
    dynamic_offset: int
    init_array_start: Optional[int] = None
    init_array_end: Optional[int] = None
    corelocal_offset: Optional[int] = None


# ---------------------------------------------------------------------------
# Segments and sections
# ---------------------------------------------------------------------------

class Section(BaseModel):
    """A named sub-region owned by exactly one segment."""
    name: str
    start: int
    size: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def end(self) -> int:
        """Inclusive end offset."""
        return self.start + self.size - 1


class Segment(BaseModel):
    """A top-level memory region of the kernel image.

    The only part that changes after construction is ``sections``, which
    grows as sections are attached.
    """
    name: str
    kind: SegmentKind
    start: int
    size: int
    sections: list[Section] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def end(self) -> int:
        """Inclusive end offset."""
        return self.start + self.size - 1

    def overlaps(self, other: Segment) -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


class DroppedSection(BaseModel):
    """A section that could not be attached to any segment.

    Attributes:
        name: Section name (``.rela.dyn`` etc.).
        start: Start offset, when the backing tag was present.
        size: Size, when the backing tag was present.
        reason: Why the section was omitted.
    """
    name: str
    start: Optional[int] = None
    size: Optional[int] = None
    reason: str


# ---------------------------------------------------------------------------
# Dynamic table
# ---------------------------------------------------------------------------

class DynamicTable(BaseModel):
    """The parsed tag/value table.

    Attributes:
        offset: Image offset of the first entry.
        end: Cursor position after the last consumed entry (exclusive).
        entries: Tag id to values.  The multi-valued tag lists every
            occurrence in table order; every other tag holds only the
            value of its last occurrence.
        string_table: Raw string-table contents, or ``"\\x00"`` when the
            table's address or size tag is missing.
    """
    offset: int
    end: int
    entries: dict[int, list[int]] = Field(default_factory=dict)
    string_table: str = "\x00"

    @property
    def size(self) -> int:
        return self.end - self.offset

    def first(self, tag: int) -> Optional[int]:
        """Return the first value recorded for *tag*, or ``None``."""
        values = self.entries.get(int(tag))
        if not values:
            return None
        return values[0]


# ---------------------------------------------------------------------------
# Aggregate results
# ---------------------------------------------------------------------------

class KernelLayout(BaseModel):
    """Structured layout recovered from one kernel image.

    Attributes:
        map_offset: Offset of the accepted kernel map.
        variant: Generation of that map.
        flat_size: End of the data segment; bounds the dynamic table.
        segments: The four top-level segments, in CODE/CONST/DATA/BSS order.
        dynamic: The parsed dynamic table.
        dropped_sections: Sections that were omitted, with the reason.
    """
    map_offset: int
    variant: MapVariant
    flat_size: int
    segments: list[Segment] = Field(default_factory=list)
    dynamic: DynamicTable
    dropped_sections: list[DroppedSection] = Field(default_factory=list)

    @property
    def string_table(self) -> str:
        return self.dynamic.string_table

    def segment(self, name: str) -> Optional[Segment]:
        """Look up a segment by name (``.text``, ``.rodata``, ...)."""
        for seg in self.segments:
            if seg.name == name:
                return seg
        return None

    def find_section(self, name: str) -> Optional[Section]:
        for seg in self.segments:
            for sec in seg.sections:
                if sec.name == name:
                    return sec
        return None


class ImageInfo(BaseModel):
    """Metadata about the analysed image file.

    Attributes:
        path: Filesystem path (or ``<memory>``).
        size: Image size in bytes.
        md5: MD5 hash of the image contents.
        sha256: SHA-256 hash of the image contents.
    """
    path: str = ""
    size: int = 0
    md5: str = ""
    sha256: str = ""


class KernelAnalysisResult(BaseModel):
    """Complete analysis result for a single kernel image."""
    info: ImageInfo = Field(default_factory=ImageInfo)
    layout: KernelLayout
