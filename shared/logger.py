"""
Kernmap Structured Logger
==========================

:class:`KernmapLogger` binds a stdlib logger under the ``kernmap.``
namespace to two optional sinks: a Rich handler on stderr for people and
a rotating file for machines (plain text or one JSON object per line).

The parser modules never touch this class.  They log through plain
``logging.getLogger("kernmap.parsers.<module>")`` loggers, and the CLI
makes their DEBUG records visible by creating a ``KernmapLogger("parsers")``,
which installs the handlers on the parent ``kernmap.parsers`` logger.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

NAMESPACE = "kernmap"

_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

_LEVEL_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
    }
)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


class _JSONLineFormatter(logging.Formatter):
    """One JSON object per record.

    ``operation`` is only written while an operation is active, and
    ``extra`` only when the call carried keyword fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        operation = getattr(record, "operation", None)
        if operation is not None:
            entry["operation"] = operation
        fields = getattr(record, "fields", None)
        if fields:
            entry["extra"] = fields
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _stderr_handler(level: int) -> logging.Handler:
    # Reports and --json output go to stdout; logs stay on stderr.
    return RichHandler(
        level=level,
        console=Console(theme=_LEVEL_THEME, stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )


def _file_handler(
    path: Path,
    level: int,
    json_logs: bool,
    max_bytes: int,
    backup_count: int,
) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    if json_logs:
        handler.setFormatter(_JSONLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT))
    return handler


class _Timer:
    """Elapsed-time handle yielded by :meth:`KernmapLogger.timed`."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self._start


class KernmapLogger:
    """Logger for one Kernmap component.

    Usage::

        log = KernmapLogger("engine", log_file="logs/kernmap.log", json_logs=True)
        with log.operation("kernel_parse"):
            log.debug("Map accepted", offset=0x40)

    Keyword arguments other than ``exc_info`` passed to the log methods
    are recorded as structured fields (the ``extra`` object in JSON logs).

    Args:
        tool_name:       Component name, appended to the ``kernmap.`` namespace.
        log_level:       Minimum level name (DEBUG, INFO, WARNING, ERROR).
        log_file:        Rotating log file; ``None`` or ``""`` disables it.
        json_logs:       Write the file as JSON lines instead of text.
        max_bytes:       Size at which the file rotates (default 10 MiB).
        backup_count:    Rotated files to keep.
        console_output:  Attach the Rich stderr handler.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
        console_output: bool = True,
    ) -> None:
        self._tool_name = tool_name
        self._operation: str | None = None

        level = _level(log_level)
        self._logger = logging.getLogger(f"{NAMESPACE}.{tool_name}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Re-creating a logger for the same component replaces its sinks.
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        if console_output:
            self._logger.addHandler(_stderr_handler(level))
        if log_file:
            self._logger.addHandler(
                _file_handler(Path(log_file), level, json_logs, max_bytes, backup_count)
            )

    @property
    def tool_name(self) -> str:
        return self._tool_name

    @property
    def underlying(self) -> logging.Logger:
        return self._logger

    # ------------------------------------------------------------------ #
    #  Scopes
    # ------------------------------------------------------------------ #

    @contextmanager
    def operation(self, name: str) -> Iterator[KernmapLogger]:
        """Tag every record emitted inside the block with ``operation=name``."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[_Timer]:
        """Log the start (DEBUG) and the duration (INFO) of the block."""
        self.debug("Started: %s", label)
        timer = _Timer()
        try:
            yield timer
        finally:
            self.info("Completed: %s (%.3f sec)", label, timer.elapsed)

    # ------------------------------------------------------------------ #
    #  Log methods
    # ------------------------------------------------------------------ #

    def _log(self, level: int, msg: str, args: tuple[Any, ...], fields: dict[str, Any]) -> None:
        exc_info = fields.pop("exc_info", None)
        extra = {"tool_name": self._tool_name, "operation": self._operation, "fields": fields}
        self._logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, args, fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, args, fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, args, fields)

    def error(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.ERROR, msg, args, fields)
