"""
Locale resolution middleware for FastAPI / Starlette.

Resolution order for every request:
    1. `?lang=xx` query parameter (name configurable), if supported
    2. the best supported tag in `Accept-Language` (by q-value, then order)
    3. the default locale

The chosen locale is stored in a ContextVar for MessageService, kept on
`request.state.locale` and echoed back in the `Content-Language` response
header.
"""

from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .context import reset_locale, set_locale
from .message_service import normalize_locale


def parse_accept_language(header: str | None) -> list[str]:
    """
    Return the language tags in an Accept-Language header, best first.

    'pt-BR,pt;q=0.9,en;q=0.8' -> ['pt_br', 'pt', 'en']
    Malformed q-values count as 0; '*' is ignored.
    """
    if not header:
        return []

    weighted: list[tuple[float, int, str]] = []
    for position, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = normalize_locale(pieces[0])
        if not tag or tag == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        if quality > 0:
            weighted.append((-quality, position, tag))

    return [tag for _, _, tag in sorted(weighted)]


class LocaleMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        supported_locales: Iterable[str] = ("es", "en", "pt"),
        default_locale: str = "es",
        query_param: str = "lang",
    ):
        super().__init__(app)
        self.supported = [normalize_locale(loc) for loc in supported_locales if normalize_locale(loc)]
        self.default_locale = normalize_locale(default_locale) or "es"
        self.query_param = query_param

    def _match(self, tag: str | None) -> str | None:
        if not tag:
            return None
        if tag in self.supported:
            return tag
        language = tag.split("_", 1)[0]
        if language in self.supported:
            return language
        return None

    def resolve(self, request: Request) -> str:
        explicit = self._match(normalize_locale(request.query_params.get(self.query_param)))
        if explicit:
            return explicit
        for tag in parse_accept_language(request.headers.get("Accept-Language")):
            matched = self._match(tag)
            if matched:
                return matched
        return self.default_locale

    async def dispatch(self, request: Request, call_next):
        locale = self.resolve(request)
        request.state.locale = locale
        token = set_locale(locale)
        try:
            response = await call_next(request)
            response.headers["Content-Language"] = locale.replace("_", "-")
            return response
        finally:
            reset_locale(token)
