"""
Kernmap Output
===============

Output rendering modules for analysis results.

- ``console`` -- Rich-based console display
- ``report``  -- JSON report generation
"""

from kernmap.output.console import KernmapConsoleOutput
from kernmap.output.report import KernmapReportGenerator

__all__ = [
    "KernmapConsoleOutput",
    "KernmapReportGenerator",
]
