from .context import get_locale, reset_locale, set_locale
from .message_keys import MessageKeys
from .message_service import MessageService, normalize_locale
from .middleware import LocaleMiddleware, parse_accept_language

__all__ = [
    "MessageKeys",
    "MessageService",
    "LocaleMiddleware",
    "get_locale",
    "set_locale",
    "reset_locale",
    "normalize_locale",
    "parse_accept_language",
]
