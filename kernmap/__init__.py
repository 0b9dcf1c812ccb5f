"""
Kernmap -- Raw Kernel Image Layout Recovery
============================================

Kernmap recovers the memory layout of a raw, headerless kernel image.
It locates the kernel map embedded near the image entry point, derives
the code, read-only data, data and zero-fill segments, walks the dynamic
table and attaches the string table, initializer arrays and relocation
tables to the segment that owns them.

Capabilities:
    - Legacy (32-bit field) and modern (64-bit field) kernel map detection
    - Overlap-checked segment construction
    - Dynamic table parsing with per-tag multiplicity
    - Section attachment with diagnostics for omitted sections
    - Rich console display and JSON report generation
"""

from kernmap.core.engine import KernmapEngine
from kernmap.core.errors import KernelParseError
from kernmap.core.models import KernelAnalysisResult, KernelLayout
from kernmap.output.console import KernmapConsoleOutput
from kernmap.output.report import KernmapReportGenerator
from kernmap.parsers.kernel import parse_kernel

__version__ = "1.0.0"
__all__ = [
    "KernmapEngine",
    "KernelParseError",
    "KernelAnalysisResult",
    "KernelLayout",
    "KernmapConsoleOutput",
    "KernmapReportGenerator",
    "parse_kernel",
]
