"""
Kernmap CLI -- Raw Kernel Image Layout Recovery
================================================

Click-based command-line interface for Kernmap.

Usage::

    # Recover and display the layout
    kernmap /path/to/kernel.bin

    # Write a JSON report
    kernmap /path/to/kernel.bin --output layout.json

    # Print the whole scan result as JSON to stdout
    kernmap /path/to/kernel.bin --json

    # Debug output from every parsing stage
    kernmap /path/to/kernel.bin --verbose

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys

import click

from shared.config import KernmapConfig
from shared.console import KernmapConsole
from shared.logger import KernmapLogger

from kernmap.core.engine import KernmapEngine
from kernmap.core.models import KernelAnalysisResult
from kernmap.output.console import KernmapConsoleOutput
from kernmap.output.report import KernmapReportGenerator


def _parse_window(ctx: click.Context, param: click.Parameter, value: str | None) -> int | None:
    """Accept a positive decimal or ``0x``-prefixed hexadecimal integer."""
    if value is None:
        return None
    try:
        number = int(value, 0)
    except ValueError:
        raise click.BadParameter(f"not an integer: {value!r}")
    if number < 1:
        raise click.BadParameter(f"must be positive: {value!r}")
    return number


@click.command("kernmap")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML configuration file.  Default: <project root>/config.toml.",
)
@click.option(
    "--window", "-w",
    "window",
    callback=_parse_window,
    default=None,
    help="Bytes searched for the kernel map (e.g. 0x2000).",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output the scan result as JSON to stdout.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
def kernmap_cli(
    path: str,
    config_path: str | None,
    window: int | None,
    output_path: str | None,
    json_output: bool,
    verbose: bool,
) -> None:
    """Kernmap -- recover the memory layout of a raw kernel image.

    PATH is the raw, decompressed kernel image to analyse.

    Examples:

    \b
        kernmap kernel.bin
        kernmap kernel.bin --output layout.json
        kernmap kernel.bin --window 0x4000 --verbose
    """
    console = KernmapConsole(quiet=json_output)

    try:
        config = KernmapConfig.load(config_path)
    except (FileNotFoundError, ValueError) as exc:
        console.error(f"Could not load configuration: {exc}")
        sys.exit(1)

    if window is not None:
        config.scan.scan_window = window

    log_level = "DEBUG" if verbose or config.global_settings.debug else config.global_settings.log_level
    log_file = config.global_settings.log_file or None
    logger = KernmapLogger(
        "engine",
        log_level=log_level,
        log_file=log_file,
        json_logs=config.global_settings.log_json,
        console_output=not json_output,
    )
    # Parser modules log under kernmap.parsers.*
    KernmapLogger(
        "parsers",
        log_level=log_level,
        log_file=log_file,
        json_logs=config.global_settings.log_json,
        console_output=verbose and not json_output,
    )

    engine = KernmapEngine(config=config, logger=logger)

    try:
        with console.status("Scanning for kernel map..."):
            scan_result = engine.analyze(path)
    except KeyboardInterrupt:
        console.warning("Analysis interrupted by user.")
        sys.exit(130)

    if json_output:
        click.echo(json.dumps(scan_result.model_dump(mode="json"), indent=2, default=str))
        sys.exit(0 if scan_result.success else 1)

    if not scan_result.success:
        console.findings_table(scan_result.findings)
        console.error(scan_result.summary)
        sys.exit(1)

    analysis_result = KernelAnalysisResult.model_validate(
        scan_result.metadata["kernel_analysis"]
    )

    KernmapConsoleOutput(console=console).display(analysis_result)

    if scan_result.findings:
        console.section("Findings")
        console.findings_table(scan_result.findings)

    console.blank()
    console.info(f"Duration: {scan_result.duration_seconds:.2f}s")
    console.success(scan_result.summary)

    if output_path:
        report_gen = KernmapReportGenerator(version=config.global_settings.version)
        report_path = report_gen.generate_json(analysis_result, output_path, scan_result)
        console.success(f"JSON report saved: {report_path}")


def main() -> None:
    """Entry point for the ``kernmap`` console script."""
    kernmap_cli()


if __name__ == "__main__":
    main()
