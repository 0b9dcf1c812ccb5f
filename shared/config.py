"""
Kernmap Configuration Management
=================================

Dataclass configuration for Kernmap, persisted as TOML.

Two tables are recognised, each optional and each overriding defaults
key by key::

    [global]
    log_level = "DEBUG"
    log_file = "logs/kernmap.log"
    log_json = true

    [scan]
    scan_window = 0x4000

Keys Kernmap does not know are ignored.  Without an explicit path the
loader looks for ``config.toml`` in the project root and falls back to
the defaults when there is none.

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


@dataclass(slots=True)
class ScanConfig:
    """Kernel map search and input limits.

    ``scan_window`` is the number of leading bytes searched for the
    kernel map; ``max_file_size`` caps what the engine reads into memory.
    """

    scan_window: int = 0x2000
    max_file_size: int = 268_435_456  # 256 MiB
    report_dropped_sections: bool = True

    def __post_init__(self) -> None:
        if self.scan_window < 1:
            raise ValueError(f"scan_window must be positive, got {self.scan_window:#x}")


@dataclass(slots=True)
class GlobalConfig:
    """Logging and reporting settings shared by every entry point."""

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


@dataclass(slots=True)
class KernmapConfig:
    """Complete configuration.

    Usage:
        >>> config = KernmapConfig.load()
        >>> hex(config.scan.scan_window)
        '0x2000'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> KernmapConfig:
        """Load configuration from *path*, or from the default location.

        Raises:
            FileNotFoundError: *path* was given and does not exist.
            ValueError: A value is out of range (e.g. ``scan_window = 0``),
                or the file is not valid TOML.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=_from_table(GlobalConfig, raw.get("global", {})),
            scan=_from_table(ScanConfig, raw.get("scan", {})),
        )


def _from_table(cls: type, table: dict[str, Any]) -> Any:
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in table.items() if k in known})
