"""
Request ID middleware for FastAPI / Starlette.

Reuses an incoming `X-Request-ID` when it looks sane, otherwise generates a
UUID4. The id is stored in the request-id ContextVar for the duration of the
request and echoed back in the `X-Request-ID` response header.
"""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# Printable token, no whitespace, bounded length. Keeps newlines out of log lines.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)


__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER", "resolve_request_id"]
