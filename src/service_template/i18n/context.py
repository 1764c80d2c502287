"""
Per-request locale storage.

Same approach as the request id in `core.logging.filters`: a ContextVar keeps the
value isolated per request and survives `await` boundaries. LocaleMiddleware sets
it, MessageService reads it.
"""

import contextvars

_locale_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("locale", default=None)


def set_locale(locale: str | None) -> contextvars.Token:
    """Store the locale for the current context and return the reset token."""
    return _locale_ctx.set(locale)


def reset_locale(token: contextvars.Token) -> None:
    _locale_ctx.reset(token)


def get_locale() -> str | None:
    return _locale_ctx.get()
