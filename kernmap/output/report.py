"""
Kernmap Report Generator
=========================

Generates JSON reports from kernel layout analysis results, in a
structured format suitable for loaders, disassembler scripts and other
downstream tooling.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shared.models import ScanResult

from kernmap.core.models import KernelAnalysisResult, Segment
from kernmap.parsers.dynamic import tag_name


class KernmapReportGenerator:
    """Generate JSON reports from kernel analysis results.

    Usage::

        generator = KernmapReportGenerator()
        generator.generate_json(result, "report.json")
    """

    def __init__(self, version: str = "1.0.0") -> None:
        self._version = version

    def build_report(
        self,
        result: KernelAnalysisResult,
        scan: ScanResult | None = None,
    ) -> dict[str, Any]:
        """Build the report as a plain dictionary.

        Args:
            result: The analysis result to report.
            scan: Optional scan envelope whose findings are included.
        """
        layout = result.layout
        report_data: dict[str, Any] = {
            "report_type": "kernmap_kernel_layout",
            "version": self._version,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "image": {
                "path": result.info.path,
                "size": result.info.size,
                "md5": result.info.md5,
                "sha256": result.info.sha256,
            },
            "kernel_map": {
                "offset": layout.map_offset,
                "variant": layout.variant.value,
                "flat_size": layout.flat_size,
            },
            "segments": [self._segment_dict(seg) for seg in layout.segments],
            "dynamic": {
                "offset": layout.dynamic.offset,
                "end": layout.dynamic.end,
                "entries": {
                    tag_name(tag): values
                    for tag, values in sorted(layout.dynamic.entries.items())
                },
                "string_table": layout.string_table,
            },
            "dropped_sections": [
                d.model_dump(mode="json") for d in layout.dropped_sections
            ],
        }
        if scan is not None:
            report_data["findings"] = [
                f.model_dump(mode="json") for f in scan.findings
            ]
        return report_data

    def generate_json(
        self,
        result: KernelAnalysisResult,
        output_path: str,
        scan: ScanResult | None = None,
    ) -> str:
        """Write a structured JSON report.

        Returns:
            The absolute path of the generated report.
        """
        report_data = self.build_report(result, scan)

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False, default=str)

        return str(path.resolve())

    @staticmethod
    def _segment_dict(seg: Segment) -> dict[str, Any]:
        return {
            "name": seg.name,
            "kind": seg.kind.value,
            "start": seg.start,
            "size": seg.size,
            "end": seg.end,
            "sections": [
                {
                    "name": sec.name,
                    "start": sec.start,
                    "size": sec.size,
                    "end": sec.end,
                }
                for sec in seg.sections
            ],
        }
