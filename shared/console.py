"""
Kernmap Console Interface
==========================

Thin layer over :class:`rich.console.Console` that gives every Kernmap
front end the same palette: a banner, section rules, one-line status
messages, tables and the findings table of a
:class:`~shared.models.ScanResult`.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from shared.models import Finding, Severity

_THEME = Theme(
    {
        "kernmap.section": "bold bright_magenta",
        "kernmap.success": "bold green",
        "kernmap.warning": "bold yellow",
        "kernmap.error": "bold red",
        "kernmap.info": "bold bright_blue",
        "kernmap.dim": "dim white",
        "kernmap.highlight": "bold bright_white",
    }
)

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold white on red",
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "bold yellow",
    Severity.LOW: "bold bright_cyan",
    Severity.INFO: "bold bright_blue",
}

_BANNER_ART = r"""
[bright_cyan]
  _
 | | _____ _ __ _ __  _ __ ___   __ _ _ __
 | |/ / _ \ '__| '_ \| '_ ` _ \ / _` | '_ \
 |   <  __/ |  | | | | | | | | | (_| | |_) |
 |_|\_\___|_|  |_| |_|_| |_| |_|\__,_| .__/
                                     |_|
[/bright_cyan]"""

_TAGLINE = "Raw Kernel Image Layout Recovery"


def _styled_table(title: str = "") -> Table:
    return Table(
        title=title or None,
        border_style="bright_cyan",
        header_style="bold bright_magenta",
        show_lines=True,
        padding=(0, 1),
    )


class KernmapConsole:
    """Console shared by the CLI and the layout renderer.

    Usage::

        con = KernmapConsole()
        con.section("Segments")
        con.success("Layout recovered")

    Args:
        quiet:  Drop all output; the CLI sets this for ``--json``.
        record: Keep rendered output for :meth:`export_text`.
    """

    def __init__(self, *, quiet: bool = False, record: bool = False) -> None:
        self._console = Console(theme=_THEME, quiet=quiet, record=record, highlight=False)

    @property
    def rich(self) -> Console:
        return self._console

    # ------------------------------------------------------------------ #
    #  Headings
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        subtitle = (
            f"[kernmap.highlight]{_TAGLINE}[/kernmap.highlight]\n"
            f"[kernmap.dim]Version {version}[/kernmap.dim]"
        )
        self._console.print(
            Panel(
                Align.center(Text.from_markup(_BANNER_ART + "\n" + subtitle)),
                border_style="bright_cyan",
                padding=(1, 2),
            )
        )

    def section(self, title: str) -> None:
        self._console.rule(f"  {title}  ", style="kernmap.section")
        self._console.print()

    def divider(self) -> None:
        self._console.rule(style="dim")

    def blank(self) -> None:
        self._console.print()

    # ------------------------------------------------------------------ #
    #  One-line messages
    # ------------------------------------------------------------------ #

    def _message(self, style: str, label: str, message: str) -> None:
        self._console.print(f"[{style}]{label}:[/{style}] {escape(message)}")

    def success(self, message: str) -> None:
        self._message("kernmap.success", "[✔] SUCCESS", message)

    def warning(self, message: str) -> None:
        self._message("kernmap.warning", "[⚠] WARNING", message)

    def error(self, message: str) -> None:
        self._message("kernmap.error", "[✘] ERROR", message)

    def info(self, message: str) -> None:
        self._message("kernmap.info", "[ℹ] INFO", message)

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render *rows* under *columns*; every cell is stringified."""
        tbl = _styled_table(title)
        for idx, name in enumerate(columns):
            tbl.add_column(name, style=styles[idx] if styles and idx < len(styles) else "")
        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))
        self._console.print(tbl)

    def findings_table(self, findings: Sequence[Finding]) -> None:
        tbl = _styled_table("Findings")
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Severity", width=12)
        tbl.add_column("Title")
        tbl.add_column("Description", ratio=2)

        for idx, finding in enumerate(findings, start=1):
            style = _SEVERITY_STYLES[finding.severity]
            tbl.add_row(
                str(idx),
                Text(finding.severity.value, style=style),
                Text(finding.title),
                Text(finding.description),
            )
        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Misc
    # ------------------------------------------------------------------ #

    @contextmanager
    def status(self, message: str) -> Iterator[Status]:
        """Spinner shown while the block runs."""
        with self._console.status(
            f"[kernmap.info]{escape(message)}[/kernmap.info]",
            spinner="dots",
            spinner_style="bright_cyan",
        ) as spinner:
            yield spinner

    def export_text(self) -> str:
        """Recorded output as plain text; needs ``record=True``."""
        return self._console.export_text()
