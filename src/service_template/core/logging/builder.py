"""
Logging builder: assemble a dictConfig mapping from Settings and apply it.

    setup_logging(settings)

Handlers:
  - console (always)
  - file + error_file when LOG_TO_STDOUT is off (files live in LOG_DIR)
  - error_console otherwise, so ERROR records also reach stderr as JSON

Loggers:
  - root, at LOG_LEVEL
  - uvicorn.error / uvicorn.access
  - sqlalchemy.engine: DEBUG when ENABLE_SQL_LOGGING, else WARNING
  - asyncio: WARNING (its DEBUG output drowns the command pipeline's)
"""

import logging
import logging.config
from pathlib import Path

from service_template.config.settings import Settings

from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`.

    Pure function: nothing is applied, so tests can assert on the result.
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.ENV == "development" else logging.Formatter,
            "format": STANDARD_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": settings.SERVICE_NAME,
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    handler_names = list(handlers.keys())

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": handler_names,
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": handler_names,
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": handler_names,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": handler_names,
                "propagate": False,
            },
            "asyncio": {"level": "WARNING"},
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration built from `settings`.

    Creates LOG_DIR when file logging is on. A RequestIdFilter is also added to
    the root logger so records emitted before any handler filter still carry
    a request_id.
    """
    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    root = logging.getLogger()
    if not any(isinstance(f, RequestIdFilter) for f in root.filters):
        root.addFilter(RequestIdFilter())


__all__ = ["make_dict_config", "setup_logging", "STANDARD_FORMAT"]
