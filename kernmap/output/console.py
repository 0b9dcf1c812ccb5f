"""
Kernmap Console Output
=======================

Rich-powered terminal display for recovered kernel layouts: image
metadata, the segment table with nested sections, the dynamic table and
any omitted sections.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from shared.console import KernmapConsole

from kernmap.core.models import (
    DroppedSection,
    DynamicTable,
    ImageInfo,
    KernelAnalysisResult,
    KernelLayout,
    Segment,
    SegmentKind,
)
from kernmap.parsers.dynamic import DynamicTag, tag_name


_KIND_COLOURS: dict[SegmentKind, str] = {
    SegmentKind.CODE: "bright_red",
    SegmentKind.CONST: "bright_yellow",
    SegmentKind.DATA: "bright_green",
    SegmentKind.BSS: "bright_blue",
}

_STRING_PREVIEW = 64


def _hex(value: int) -> str:
    return f"0x{value:x}"


class KernmapConsoleOutput:
    """Rich terminal display for Kernmap analysis results.

    Usage::

        output = KernmapConsoleOutput()
        output.display(analysis_result)
    """

    def __init__(self, console: KernmapConsole | None = None) -> None:
        self._console: KernmapConsole = console or KernmapConsole()

    def display(self, result: KernelAnalysisResult) -> None:
        """Display the complete analysis result."""
        self._console.banner()
        self._console.section("Kernel Layout")

        self.display_header(result.info, result.layout)
        self.display_segments(result.layout.segments)
        self.display_dynamic(result.layout.dynamic)

        if result.layout.dropped_sections:
            self.display_dropped(result.layout.dropped_sections)

        self._console.divider()

    def display_header(self, info: ImageInfo, layout: KernelLayout) -> None:
        lines: list[str] = [
            f"[bold]File:[/bold]        {info.path}",
            f"[bold]Size:[/bold]        {info.size:,} bytes ({info.size / 1024:.1f} KiB)",
            f"[bold]Kernel map:[/bold]  {layout.variant.value} at {_hex(layout.map_offset)}",
            f"[bold]Flat size:[/bold]   {_hex(layout.flat_size)}",
        ]
        if info.md5:
            lines.append(f"[bold]MD5:[/bold]         {info.md5}")
        if info.sha256:
            lines.append(f"[bold]SHA-256:[/bold]     {info.sha256}")

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]Image Information[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_segments(self, segments: list[Segment]) -> None:
        """Display the segment table, each segment followed by its sections."""
        self._console.section("Segments")

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("Name", style="bold", min_width=12)
        tbl.add_column("Kind")
        tbl.add_column("Start", justify="right")
        tbl.add_column("Size", justify="right")
        tbl.add_column("End (incl.)", justify="right")

        for seg in segments:
            colour = _KIND_COLOURS.get(seg.kind, "white")
            tbl.add_row(
                seg.name,
                f"[{colour}]{seg.kind.value}[/{colour}]",
                _hex(seg.start),
                _hex(seg.size),
                _hex(seg.end),
            )
            for sec in seg.sections:
                tbl.add_row(
                    f"  [dim]└[/dim] {sec.name}",
                    "",
                    _hex(sec.start),
                    _hex(sec.size),
                    _hex(sec.end),
                )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_dynamic(self, table: DynamicTable) -> None:
        self._console.section("Dynamic Table")

        rows: list[tuple[str, str]] = []
        for tag, values in sorted(table.entries.items()):
            if not values:
                continue
            rows.append((tag_name(tag), ", ".join(_hex(v) for v in values)))

        self._console.table(
            f"[{_hex(table.offset)}, {_hex(table.end)})",
            ["Tag", "Value(s)"],
            rows,
            styles=["bold", ""],
        )

        if DynamicTag.DT_STRSZ in table.entries:
            preview = table.string_table[:_STRING_PREVIEW]
            self._console.info(
                f"String table: {len(table.string_table)} bytes "
                f"{preview.replace(chr(0), ' ')!r}"
            )
        self._console.blank()

    def display_dropped(self, dropped: list[DroppedSection]) -> None:
        self._console.section("Omitted Sections")
        rows = [
            (
                d.name,
                _hex(d.start) if d.start is not None else "-",
                _hex(d.size) if d.size is not None else "-",
                d.reason,
            )
            for d in dropped
        ]
        self._console.table(
            "",
            ["Name", "Start", "Size", "Reason"],
            rows,
            styles=["bold", "", "", "dim"],
        )
