import hashlib

import pytest

from shared.logger import KernmapLogger
from shared.models import Severity

from kernmap.core.engine import KernmapEngine
from kernmap.core.errors import MapNotFoundError
from kernmap.core.models import KernelAnalysisResult

from tests.images import legacy_image


class TestAnalyze:

    def test_success(self, engine, kernel_file):
        scan = engine.analyze(str(kernel_file))

        assert scan.success
        assert scan.tool_name == "kernmap"
        assert scan.end_time is not None
        assert scan.summary.startswith("Analysis complete: legacy kernel map at 0x0")
        assert "Dropped: 3" in scan.summary

    def test_metadata_round_trips(self, engine, kernel_file):
        scan = engine.analyze(str(kernel_file))
        result = KernelAnalysisResult.model_validate(scan.metadata["kernel_analysis"])

        assert result.info.size == len(legacy_image())
        assert result.layout.dynamic.entries[1] == [0x1, 0xB, 0x7]
        assert result.layout.find_section(".dynstr").start == 0x1100

    def test_dropped_sections_become_info_findings(self, engine, kernel_file):
        scan = engine.analyze(str(kernel_file))

        assert [f.severity for f in scan.findings] == [Severity.INFO] * 3
        assert scan.findings[1].title == "Section .rel.dyn not attached"
        assert scan.critical_count == 0

    def test_dropped_findings_can_be_disabled(self, engine, config, kernel_file):
        config.scan.report_dropped_sections = False
        scan = engine.analyze(str(kernel_file))

        assert scan.success
        assert scan.findings == []

    def test_map_not_found(self, engine, tmp_path):
        path = tmp_path / "zeros.bin"
        path.write_bytes(bytes(0x4000))
        scan = engine.analyze(str(path))

        assert not scan.success
        assert scan.critical_count == 1
        assert scan.findings[0].title == "Kernel map not found"
        assert "MapNotFoundError" in scan.findings[0].evidence
        assert scan.summary.startswith("Analysis failed")
        assert "kernel_analysis" not in scan.metadata

    def test_underflow_is_reported_as_parse_failure(self, engine, tmp_path):
        path = tmp_path / "short.bin"
        path.write_bytes(legacy_image()[:0x3000])
        scan = engine.analyze(str(path))

        assert not scan.success
        assert scan.findings[0].title == "Parse failed"

    def test_missing_file(self, engine, tmp_path):
        scan = engine.analyze(str(tmp_path / "absent.bin"))

        assert not scan.success
        assert scan.findings[0].severity is Severity.CRITICAL
        assert scan.summary.startswith("File not found")

    def test_file_too_large(self, engine, config, kernel_file):
        config.scan.max_file_size = 0x100
        scan = engine.analyze(str(kernel_file))

        assert not scan.success
        assert scan.summary.startswith("File too large")

    def test_scan_window_from_config(self, engine, config, tmp_path):
        path = tmp_path / "kernel.bin"
        path.write_bytes(legacy_image())
        config.scan.scan_window = 0x10
        assert not engine.analyze(str(path)).success


class TestAnalyzeData:

    def test_hashes(self, engine):
        data = legacy_image()
        result = engine.analyze_data(data)

        assert result.info.path == "<memory>"
        assert result.info.md5 == hashlib.md5(data).hexdigest()
        assert result.info.sha256 == hashlib.sha256(data).hexdigest()

    def test_errors_propagate(self, engine):
        with pytest.raises(MapNotFoundError):
            engine.analyze_data(bytes(0x100))


def test_dropped_sections_are_logged(config, kernel_file, tmp_path):
    log_path = tmp_path / "engine.log"
    logger = KernmapLogger("engine-test", log_file=log_path, console_output=False)
    KernmapEngine(config=config, logger=logger).analyze(str(kernel_file))
    for handler in logger.underlying.handlers:
        handler.close()

    text = log_path.read_text()
    assert "3 section(s) not attached: .fini_array, .rel.dyn, .rela.plt" in text
