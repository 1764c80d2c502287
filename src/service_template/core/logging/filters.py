"""
Logging filters.

RequestIdFilter
    Guarantees every LogRecord has `request_id`, read from a ContextVar that
    RequestIDMiddleware sets per HTTP request ("-" outside of a request).
    ContextVars follow the request across awaits and into tasks created from it.
    Threads do not inherit them, so the async command pipeline copies the
    caller's context into the worker it submits.

RedactFilter
    Masks `extra={...}` values whose key looks sensitive (password, token...).
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """
    Set the request id in the current context.

    Returns:
        token: pass it to reset_request_id(token) to restore the previous value.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Ensure `record.request_id` is set.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then the "-" sentinel so `%(request_id)s` never raises KeyError.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = getattr(record, "request_id", None) or get_request_id() or "-"
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {
        "password",
        "secret",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "api_key",
        "ssn",
    }
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True


__all__ = [
    "set_request_id",
    "reset_request_id",
    "get_request_id",
    "RequestIdFilter",
    "RedactFilter",
]
