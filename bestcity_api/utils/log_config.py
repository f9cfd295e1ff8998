"""Logging setup: console sink plus rotating JSON file sinks.

File sinks (unless disabled):
    error.log       ERROR and above
    combined.log    everything at the configured level
    app.log         INFO and above
    exceptions.log  uncaught exceptions (EXCEPTIONS_LOGGER)
    rejections.log  unhandled errors in asyncio tasks (REJECTIONS_LOGGER)

Structured metadata travels in ``extra=`` and is rendered by every sink.
"""

import json
import logging
import os
import re
from datetime import datetime, timedelta
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from pythonjsonlogger.core import RESERVED_ATTRS, merge_record_extra
from pythonjsonlogger.json import JsonFormatter as BaseJsonFormatter
from uvicorn.logging import ColourizedFormatter

from bestcity_api.config import Settings

EXCEPTIONS_LOGGER = "bestcity_api.exceptions"
REJECTIONS_LOGGER = "bestcity_api.rejections"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Set by the stdlib and uvicorn formatters, never by callers
_CONSOLE_RESERVED = frozenset(RESERVED_ATTRS) | {
    "message",
    "asctime",
    "color_message",
    "levelprefix",
    "taskName",
}


class JsonFormatter(BaseJsonFormatter):
    """One JSON object per line, for the file sinks."""

    def __init__(self, service: str, environment: str) -> None:
        super().__init__(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt=TIMESTAMP_FORMAT,
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
                "exc_info": "stack",
            },
            static_fields={"service": service, "environment": environment},
            json_ensure_ascii=False,
        )

    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname.lower()


class ConsoleFormatter(ColourizedFormatter):
    """Readable console line with extras appended as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = merge_record_extra(record, {}, reserved=_CONSOLE_RESERVED)
        if extras:
            line = f"{line} {json.dumps(extras, ensure_ascii=False, default=str)}"
        return line


class SizedTimedRotatingFileHandler(TimedRotatingFileHandler):
    """Rotate at midnight and whenever the file would grow past ``max_bytes``.

    A second rotation on the same day gets a numeric suffix instead of
    replacing the earlier file. Rotated files dated more than
    ``backup_days`` days ago are deleted.
    """

    def __init__(self, filename: str | Path, max_bytes: int = 0, backup_days: int = 0) -> None:
        super().__init__(
            filename,
            when="midnight",
            backupCount=backup_days,
            encoding="utf-8",
            delay=True,
        )
        self.max_bytes = max_bytes
        self.backup_days = backup_days
        # Accept the numeric same-day suffix when pruning old files
        self.extMatch = re.compile(r"^\d{4}-\d{2}-\d{2}(\.\d+)?$", re.ASCII)

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if super().shouldRollover(record):
            return True
        if self.max_bytes <= 0:
            return False
        if self.stream is None:
            self.stream = self._open()
        msg = f"{self.format(record)}\n"
        self.stream.seek(0, os.SEEK_END)
        size = self.stream.tell()
        return size > 0 and size + len(msg.encode("utf-8")) > self.max_bytes

    def rotation_filename(self, default_name: str) -> str:
        name = super().rotation_filename(default_name)
        candidate, counter = name, 1
        while os.path.exists(candidate):
            candidate = f"{name}.{counter}"
            counter += 1
        return candidate

    def getFilesToDelete(self) -> list[str]:
        dir_name, base_name = os.path.split(self.baseFilename)
        prefix = base_name + "."
        cutoff = (datetime.now() - timedelta(days=self.backup_days)).strftime("%Y-%m-%d")
        result = []
        for name in os.listdir(dir_name):
            suffix = name[len(prefix):]
            if name.startswith(prefix) and self.extMatch.match(suffix) and suffix[:10] < cutoff:
                result.append(os.path.join(dir_name, name))
        result.sort()
        return result


class LoggerWriter:
    """File-like adapter: every written line becomes one log record.

    Handed to the access log middleware as its output stream.
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        self.logger = logger
        self.level = level

    def write(self, message: str) -> int:
        for line in message.splitlines():
            if line.strip():
                self.logger.log(self.level, line.rstrip())
        return len(message)

    def flush(self) -> None:
        pass


def _file_handler(
    settings: Settings, filename: str, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler = SizedTimedRotatingFileHandler(
        Path(settings.log_dir) / filename,
        max_bytes=settings.log_max_bytes,
        backup_days=settings.log_backup_days,
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _console_handler(settings: Settings) -> logging.Handler:
    handler = logging.StreamHandler()
    if settings.is_production:
        formatter = ConsoleFormatter("%(levelname)s: %(message)s", use_colors=False)
    else:
        formatter = ConsoleFormatter(
            "%(asctime)s %(levelprefix)s %(name)s: %(message)s",
            datefmt=TIMESTAMP_FORMAT,
            use_colors=None,
        )
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: Settings, root: logging.Logger | None = None) -> None:
    """Configure the root logger (or ``root``) and the fatal-error loggers.

    Safe to call more than once: previously installed handlers are closed.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root = root or logging.getLogger()
    fatal_loggers = [logging.getLogger(EXCEPTIONS_LOGGER), logging.getLogger(REJECTIONS_LOGGER)]

    for target in (root, *fatal_loggers):
        for handler in list(target.handlers):
            target.removeHandler(handler)
            handler.close()

    root.setLevel(level)
    root.addHandler(_console_handler(settings))

    if settings.disable_file_logging:
        return

    Path(settings.log_dir).mkdir(parents=True, exist_ok=True)
    formatter = JsonFormatter(settings.service_name, settings.environment)

    root.addHandler(_file_handler(settings, "error.log", logging.ERROR, formatter))
    root.addHandler(_file_handler(settings, "combined.log", logging.NOTSET, formatter))
    root.addHandler(_file_handler(settings, "app.log", logging.INFO, formatter))

    fatal_loggers[0].addHandler(
        _file_handler(settings, "exceptions.log", logging.NOTSET, formatter)
    )
    fatal_loggers[1].addHandler(
        _file_handler(settings, "rejections.log", logging.NOTSET, formatter)
    )
