"""
Kernmap Core Module
====================

Contains the error hierarchy, the data models and the analysis engine.
The engine is imported from :mod:`kernmap.core.engine` directly.
"""

from kernmap.core.errors import (
    ByteSourceUnderflowError,
    KernelParseError,
    MapNotFoundError,
    OverlappingSegmentsError,
)
from kernmap.core.models import (
    DroppedSection,
    DynamicTable,
    KernelAnalysisResult,
    KernelLayout,
    KernelMap,
    MapVariant,
    Section,
    Segment,
    SegmentKind,
)

__all__ = [
    "ByteSourceUnderflowError",
    "KernelParseError",
    "MapNotFoundError",
    "OverlappingSegmentsError",
    "DroppedSection",
    "DynamicTable",
    "KernelAnalysisResult",
    "KernelLayout",
    "KernelMap",
    "MapVariant",
    "Section",
    "Segment",
    "SegmentKind",
]
