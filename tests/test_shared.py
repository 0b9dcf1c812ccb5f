import json
import logging

import pytest

from shared.config import GlobalConfig, KernmapConfig, ScanConfig
from shared.console import KernmapConsole
from shared.logger import KernmapLogger
from shared.models import Finding, ScanResult, Severity


class TestConfig:

    def test_defaults(self):
        config = KernmapConfig()
        assert config.scan.scan_window == 0x2000
        assert config.scan.report_dropped_sections is True
        assert config.global_settings.log_level == "INFO"

    def test_load_overrides_keys(self, tmp_path):
        path = tmp_path / "kernmap.toml"
        path.write_text(
            "[global]\n"
            'log_level = "DEBUG"\n'
            "unknown_key = 1\n"
            "\n"
            "[scan]\n"
            "scan_window = 0x4000\n"
            "report_dropped_sections = false\n"
        )
        config = KernmapConfig.load(path)

        assert config.global_settings.log_level == "DEBUG"
        assert config.global_settings.log_json is False
        assert config.scan.scan_window == 0x4000
        assert config.scan.report_dropped_sections is False
        assert config.scan.max_file_size == ScanConfig().max_file_size

    def test_explicit_missing_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            KernmapConfig.load(tmp_path / "absent.toml")

    @pytest.mark.parametrize("window", ["0", "-16"])
    def test_non_positive_scan_window_is_rejected(self, tmp_path, window):
        path = tmp_path / "kernmap.toml"
        path.write_text(f"[scan]\nscan_window = {window}\n")
        with pytest.raises(ValueError):
            KernmapConfig.load(path)

    def test_invalid_toml_is_a_value_error(self, tmp_path):
        path = tmp_path / "kernmap.toml"
        path.write_text("[scan\n")
        with pytest.raises(ValueError):
            KernmapConfig.load(path)

    def test_sections_are_independent(self):
        config = KernmapConfig(global_settings=GlobalConfig(debug=True))
        assert config.global_settings.debug is True
        assert config.scan == ScanConfig()


class TestLogger:

    def test_namespace_and_level(self):
        log = KernmapLogger("unit", log_level="warning", console_output=False)
        assert log.underlying.name == "kernmap.unit"
        assert log.underlying.level == logging.WARNING
        assert log.tool_name == "unit"

    def test_reinstantiation_replaces_handlers(self):
        KernmapLogger("dup")
        log = KernmapLogger("dup")
        assert len(log.underlying.handlers) == 1

    def test_json_file_logging(self, tmp_path):
        path = tmp_path / "logs" / "kernmap.log"
        log = KernmapLogger("jsonfile", log_file=path, json_logs=True, console_output=False)

        with log.operation("map_scan"):
            log.info("probe", offset=0x40)
        log.info("done")
        for handler in log.underlying.handlers:
            handler.close()

        first, second = (json.loads(line) for line in path.read_text().splitlines())
        assert first["logger"] == "kernmap.jsonfile"
        assert first["operation"] == "map_scan"
        assert first["extra"] == {"offset": 0x40}
        assert "operation" not in second

    def test_warning_reaches_text_file(self, tmp_path):
        path = tmp_path / "warn.log"
        log = KernmapLogger("warn", log_file=path, console_output=False)
        log.debug("hidden")
        log.warning("%d section(s) not attached", 3)
        for handler in log.underlying.handlers:
            handler.close()

        text = path.read_text()
        assert "WARNING" in text
        assert "3 section(s) not attached" in text
        assert "hidden" not in text

    def test_timed(self, tmp_path):
        path = tmp_path / "timed.log"
        log = KernmapLogger("timed", log_level="DEBUG", log_file=path, console_output=False)
        with log.timed("parse") as timer:
            pass
        for handler in log.underlying.handlers:
            handler.close()

        assert timer.elapsed >= 0
        text = path.read_text()
        assert "Started: parse" in text
        assert "Completed: parse" in text


class TestModels:

    def test_evidence_is_coerced_to_json(self):
        finding = Finding(
            severity=Severity.INFO,
            title="Section .rel.dyn not attached",
            description=".rel.dyn: missing tag",
            evidence={"name": ".rel.dyn"},
        )
        assert json.loads(finding.evidence) == {"name": ".rel.dyn"}

    def test_scan_result_counts_and_finalize(self):
        scan = ScanResult(tool_name="kernmap", target="kernel.bin")
        scan.add_finding(Finding(severity=Severity.CRITICAL, title="x", description="y"))
        scan.add_finding(Finding(severity=Severity.INFO, title="x", description="y"))
        scan.finalize()

        assert scan.finding_count == 2
        assert scan.critical_count == 1
        assert scan.severity_counts["INFO"] == 1
        assert scan.duration_seconds is not None
        assert "CRITICAL: 1" in scan.summary


class TestConsole:

    def test_record_and_export(self):
        con = KernmapConsole(record=True)
        con.section("Segments")
        con.success("Layout recovered")
        con.table("Tags", ["Tag", "Value"], [("DT_STRTAB", "0x1100")])

        text = con.export_text()
        assert "Segments" in text
        assert "Layout recovered" in text
        assert "DT_STRTAB" in text

    def test_findings_table(self):
        con = KernmapConsole(record=True)
        con.findings_table([
            Finding(severity=Severity.CRITICAL, title="Kernel map not found", description="none"),
            Finding(severity=Severity.INFO, title="Section .rel.dyn not attached", description="[bold]x"),
        ])

        text = con.export_text()
        assert "CRITICAL" in text
        assert "Kernel map not found" in text
        assert "[bold]x" in text

    def test_messages_are_not_markup(self):
        con = KernmapConsole(record=True)
        con.error("Could not load configuration: [scan] scan_window")
        assert "[scan] scan_window" in con.export_text()
