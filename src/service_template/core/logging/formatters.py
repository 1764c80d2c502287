"""
Formatters used by the dictConfig built in builder.py.

  - JsonFormatter: one JSON object per line for log collectors. Carries
    service, env, version, request_id, locale and thread plus every `extra`.
  - ColorFormatter: compact ANSI-colored lines for a developer terminal.
"""

import json
import logging
from logging import LogRecord
from typing import Any

from service_template.i18n.context import get_locale
from service_template.utils.project import get_project_version

PROJECT_VERSION = get_project_version()

# LogRecord attributes that are not user extras.
_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
    | {"message", "asctime", "request_id", "taskName"}
)


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Args:
        env: environment name ("development", "production", ...).
        service: logical service name.
        datefmt: passed to logging.Formatter.formatTime.

    Non-serializable extras are converted with str(); format() never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "service-template", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "thread": record.threadName,
            "request_id": getattr(record, "request_id", "-"),
            "locale": get_locale() or "-",
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for k, v in record.__dict__.items():
            if k in _RESERVED or k in log_record or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                log_record[k] = v
            except (TypeError, ValueError):
                log_record[k] = str(v)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    TIMESTAMP | LEVEL | LOGGER | REQUEST_ID | MESSAGE, with the level colored.
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;41m",
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<8}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'request_id', '-'):<10} | "
            f"{record.getMessage()}"
        )
        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)
        return base


__all__ = ["JsonFormatter", "ColorFormatter", "PROJECT_VERSION"]
