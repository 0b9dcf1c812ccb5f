"""
Kernmap Analysis Engine
========================

Wraps the kernel image parser for file-based use: reads the image,
computes its hashes, runs the parse, and turns the outcome into a
:class:`~shared.models.ScanResult` with findings.

Analysis Pipeline:
    1. Check the file exists and is within the configured size limit
    2. Read the image and compute hashes (MD5, SHA-256)
    3. Parse the kernel layout (map scan, segments, dynamic table, sections)
    4. Generate findings (parse failure, omitted sections)

The engine never raises for a malformed image from :meth:`analyze`; the
failure is recorded as a CRITICAL finding.  :meth:`analyze_data` lets
:class:`~kernmap.core.errors.KernelParseError` propagate.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from shared.config import KernmapConfig
from shared.logger import KernmapLogger
from shared.models import Finding, ScanResult, Severity

from kernmap.core.errors import KernelParseError, MapNotFoundError
from kernmap.core.models import (
    DroppedSection,
    ImageInfo,
    KernelAnalysisResult,
)
from kernmap.parsers.byte_source import ByteSource
from kernmap.parsers.kernel import parse_kernel


class KernmapEngine:
    """Orchestrates kernel image analysis.

    Usage::

        engine = KernmapEngine()
        scan = engine.analyze("/path/to/kernel.bin")
        print(scan.summary)

    Or on bytes already in memory::

        result = engine.analyze_data(raw)
        for seg in result.layout.segments:
            print(seg.name, hex(seg.start), hex(seg.size))
    """

    def __init__(
        self,
        config: KernmapConfig | None = None,
        logger: KernmapLogger | None = None,
    ) -> None:
        """Initialise the analysis engine.

        Args:
            config: Kernmap configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: KernmapConfig = config or KernmapConfig()
        self._logger: KernmapLogger = logger or KernmapLogger("engine")

    # ------------------------------------------------------------------ #
    #  Main analysis entry point
    # ------------------------------------------------------------------ #

    def analyze(self, file_path: str) -> ScanResult:
        """Run the complete analysis on a kernel image file.

        Args:
            file_path: Path to the raw kernel image.

        Returns:
            ScanResult with ``success`` set, findings, and the serialised
            :class:`KernelAnalysisResult` under ``metadata["kernel_analysis"]``
            when the parse succeeded.
        """
        self._logger.info(f"Starting analysis of {file_path}")

        scan = ScanResult(
            tool_name="kernmap",
            target=file_path,
            start_time=datetime.now(timezone.utc),
        )

        path = Path(file_path)
        if not path.is_file():
            scan.add_finding(self._failure_finding(f"File not found: {file_path}"))
            self._logger.error(f"File not found: {file_path}")
            return scan.finalize(f"File not found: {file_path}")

        file_size = path.stat().st_size
        max_size = self._config.scan.max_file_size
        if file_size > max_size:
            message = (
                f"File too large: {file_size:,} bytes "
                f"(max: {max_size:,} bytes)"
            )
            scan.add_finding(self._failure_finding(message))
            self._logger.error(message)
            return scan.finalize(message)

        data = path.read_bytes()

        try:
            with self._logger.timed(f"kernel parse of {path.name}"):
                result = self.analyze_data(data, str(path.resolve()))
        except KernelParseError as exc:
            scan.add_finding(self._failure_finding(str(exc), exc))
            self._logger.error(f"Analysis failed: {exc}")
            return scan.finalize(f"Analysis failed: {exc}")

        if result.layout.dropped_sections:
            self._logger.warning(
                f"{len(result.layout.dropped_sections)} section(s) not attached: "
                + ", ".join(d.name for d in result.layout.dropped_sections)
            )
        if self._config.scan.report_dropped_sections:
            for dropped in result.layout.dropped_sections:
                scan.add_finding(self._dropped_finding(dropped))

        scan.success = True
        scan.metadata = {
            "kernel_analysis": result.model_dump(mode="json"),
        }

        layout = result.layout
        attached = sum(len(seg.sections) for seg in layout.segments)
        summary_parts = [
            f"Analysis complete: {layout.variant.value} kernel map at {layout.map_offset:#x}",
            f"Segments: {len(layout.segments)}",
            f"Sections: {attached}",
            f"Dropped: {len(layout.dropped_sections)}",
            f"Dynamic tags: {len(layout.dynamic.entries)}",
        ]
        scan.finalize(" | ".join(summary_parts))
        self._logger.info(scan.summary)
        return scan

    def analyze_data(
        self,
        data: bytes,
        file_path: str = "<memory>",
    ) -> KernelAnalysisResult:
        """Analyse raw bytes directly (without reading from disk).

        Args:
            data: Raw kernel image.
            file_path: Display path for the result.

        Returns:
            KernelAnalysisResult.

        Raises:
            KernelParseError: The image could not be parsed.
        """
        with self._logger.operation("kernel_parse"):
            layout = parse_kernel(
                ByteSource(data),
                scan_window=self._config.scan.scan_window,
            )
            self._logger.debug(
                f"{layout.variant.value} kernel map at {layout.map_offset:#x}, "
                f"flat size {layout.flat_size:#x}"
            )

        info = ImageInfo(
            path=file_path,
            size=len(data),
            md5=hashlib.md5(data).hexdigest(),
            sha256=hashlib.sha256(data).hexdigest(),
        )
        return KernelAnalysisResult(info=info, layout=layout)

    # ------------------------------------------------------------------ #
    #  Finding generation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _failure_finding(
        message: str,
        exc: KernelParseError | None = None,
    ) -> Finding:
        title = "Kernel map not found" if isinstance(exc, MapNotFoundError) else "Parse failed"
        return Finding(
            severity=Severity.CRITICAL,
            title=title,
            description=message,
            evidence={"error": type(exc).__name__} if exc is not None else "",
            recommendation=(
                "Check that the file is a raw, decompressed kernel image."
            ),
        )

    @staticmethod
    def _dropped_finding(dropped: DroppedSection) -> Finding:
        if dropped.start is not None and dropped.size is not None:
            where = f" ({dropped.start:#x}, size {dropped.size:#x})"
        else:
            where = ""
        return Finding(
            severity=Severity.INFO,
            title=f"Section {dropped.name} not attached",
            description=f"{dropped.name}{where}: {dropped.reason}",
            evidence=dropped.model_dump(mode="json"),
        )
