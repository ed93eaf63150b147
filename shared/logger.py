"""
eiftool Structured Logger
==========================

:class:`EifToolLogger` is the one logging entry point used by the parsers,
the engine and the CLI.  Human-readable records go to stderr through Rich;
a rotating log file can additionally receive plain text or JSON lines.

Keyword arguments given to a log call (``index=2, declared_size=10``) are
kept as structured fields rather than folded into the message, so a JSON
log of a walk can be filtered by section index or by operation.

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

_ROOT_NAME = "eiftool"

_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LEVEL_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
    }
)


class _JSONLineFormatter(logging.Formatter):
    """One JSON object per record.

    Example line::

        {"timestamp": "...", "level": "WARNING", "logger": "eiftool.eif",
         "message": "Section 2 size mismatch ...", "component": "eif",
         "operation": "walk_sections",
         "fields": {"index": 2, "declared_size": 10, "header_size": 20}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "component": getattr(record, "eif_component", None),
        }
        operation = getattr(record, "eif_operation", None)
        if operation is not None:
            entry["operation"] = operation
        fields = getattr(record, "eif_fields", None)
        if fields:
            entry["fields"] = fields
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _stderr_handler(level: int) -> RichHandler:
    # Log messages embed file paths and raw bytes, so markup stays off.
    return RichHandler(
        level=level,
        console=Console(theme=_LEVEL_THEME, stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )


def _file_handler(path: Path, level: int, json_lines: bool, max_bytes: int, backups: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path), maxBytes=max_bytes, backupCount=backups, encoding="utf-8",
    )
    handler.setLevel(level)
    if json_lines:
        handler.setFormatter(_JSONLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    return handler


class EifToolLogger:
    """Logger bound to one eiftool component.

    The stdlib logger behind it is ``eiftool.<component>``.  Building a new
    instance for the same component replaces (and closes) the handlers of
    the previous one, so the CLI can reconfigure logging per invocation.

    Usage::

        log = EifToolLogger("eif", log_file="eif.jsonl", json_logs=True)
        with log.operation("walk_sections"):
            log.warning("size mismatch", index=2, declared_size=10, header_size=20)
    """

    def __init__(
        self,
        component: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        console_output: bool = True,
    ) -> None:
        self._component = component
        self._operation: str | None = None

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        self._logger = logging.getLogger(f"{_ROOT_NAME}.{component}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        for old in list(self._logger.handlers):
            self._logger.removeHandler(old)
            old.close()

        if console_output:
            self._logger.addHandler(_stderr_handler(level))
        if log_file is not None:
            self._logger.addHandler(
                _file_handler(Path(log_file), level, json_logs, max_bytes, backup_count)
            )

    @property
    def underlying(self) -> logging.Logger:
        return self._logger

    @contextmanager
    def operation(self, name: str) -> Iterator[EifToolLogger]:
        """Tag every record logged inside the block with *name*."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log *label* at DEBUG on entry and again with the elapsed time on exit."""
        start = time.perf_counter()
        self.debug("Started: %s", label)
        try:
            yield
        finally:
            self.debug("Completed: %s (%.3f sec)", label, time.perf_counter() - start)

    def _log(self, level: int, msg: str, args: tuple[Any, ...], fields: dict[str, Any]) -> None:
        exc_info = fields.pop("exc_info", None)
        self._logger.log(
            level,
            msg,
            *args,
            exc_info=exc_info,
            extra={
                "eif_component": self._component,
                "eif_operation": self._operation,
                "eif_fields": fields,
            },
        )

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, args, fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, args, fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, args, fields)

    def error(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.ERROR, msg, args, fields)
