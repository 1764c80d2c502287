# service_template/api/v1/error_handlers.py
"""
FastAPI exception handlers that turn every failure into a GenericResponse
error envelope: {"ok": false, "code": <status>, "message": <localized text>}.

    ServiceError (and subclasses)   -> exc.http_status(), translated message key or exc.message
    RequestValidationError          -> 400 "<validation prefix>: <error>; <error>"
    IntegrityError (unmapped)       -> 400 data integrity / foreign key message
    ValueError                      -> 400 illegal argument
    HTTPException (404 / 405 / 415) -> endpoint / method / media type message
    Exception                       -> 500 internal server error

Messages are rendered with the locale LocaleMiddleware picked for the request
(`request.state.locale`), including for the catch-all handler, which runs
outside the middleware stack.
"""

import logging
from functools import wraps
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from service_template.exceptions import ServiceError
from service_template.exceptions.integrity import ConstraintKind, classify_integrity_error
from service_template.i18n.context import reset_locale, set_locale
from service_template.i18n.message_keys import MessageKeys
from service_template.responses.builder import ApiResponseBuilder

logger = logging.getLogger(__name__)

# Request locations where a pydantic "missing" error means a missing parameter.
_PARAMETER_LOCATIONS = {"query", "path", "header", "cookie"}

_PARSING_TYPES = {
    "int_parsing": "int",
    "float_parsing": "float",
    "bool_parsing": "bool",
    "uuid_parsing": "uuid",
    "date_parsing": "date",
    "datetime_parsing": "datetime",
    "decimal_parsing": "decimal",
}


def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return str(status)


def _responses(request: Request) -> ApiResponseBuilder:
    return request.app.state.responses


def _request_extra(request: Request, exc: BaseException) -> dict:
    return {"method": request.method, "path": request.url.path, "error_type": type(exc).__name__}


def _localized(handler):
    """Run `handler` with the request's locale active."""

    @wraps(handler)
    async def wrapper(request: Request, exc: Exception) -> Response:
        locale = getattr(request.state, "locale", None)
        if locale is None:
            return await handler(request, exc)
        token = set_locale(locale)
        try:
            return await handler(request, exc)
        finally:
            reset_locale(token)

    return wrapper


# --- Application errors ---

@_localized
async def service_error_handler(request: Request, exc: ServiceError) -> Response:
    """Domain, repository and infrastructure errors; status comes from the exception."""
    status = exc.http_status()
    extra = {**_request_extra(request, exc), "status": status, "fields": exc.fields, "message_key": exc.message_key}
    if status >= 500:
        logger.error("http.service_error", extra=extra, exc_info=exc)
    else:
        logger.info("http.service_error", extra=extra)
    return _responses(request).error_from(exc).to_response()


@_localized
async def integrity_error_handler(request: Request, exc: IntegrityError) -> Response:
    """IntegrityErrors that escaped the repositories (e.g. raised at commit time)."""
    kind, constraint = classify_integrity_error(exc)
    logger.warning(
        "http.integrity_error",
        extra={**_request_extra(request, exc), "constraint_kind": kind.value, "constraint": constraint},
    )
    responses = _responses(request)
    key = MessageKeys.ERROR_FK_CONSTRAINT if kind is ConstraintKind.FOREIGN_KEY else MessageKeys.ERROR_DATA_INTEGRITY
    return responses.bad_request(responses.messages.get_message(key)).to_response()


@_localized
async def value_error_handler(request: Request, exc: ValueError) -> Response:
    logger.info("http.illegal_argument", extra={**_request_extra(request, exc), "detail": str(exc)})
    responses = _responses(request)
    message = responses.messages.get_message(MessageKeys.ERROR_ILLEGAL_ARGUMENT, str(exc))
    return responses.bad_request(message).to_response()


# --- Request / routing errors ---

def _describe_validation_error(responses: ApiResponseBuilder, error: dict) -> str:
    loc = tuple(error.get("loc") or ())
    error_type = error.get("type", "")
    is_parameter = bool(loc) and loc[0] in _PARAMETER_LOCATIONS
    name = str(loc[-1]) if loc else ""

    if is_parameter and error_type == "missing":
        return responses.messages.get_message(MessageKeys.ERROR_PARAMETER_MISSING, name)
    if is_parameter and error_type in _PARSING_TYPES:
        return responses.messages.get_message(MessageKeys.ERROR_TYPE_MISMATCH, name, _PARSING_TYPES[error_type])

    field = ".".join(str(part) for part in loc[1:]) or ".".join(str(part) for part in loc)
    return f"{field}: {error.get('msg', '')}" if field else str(error.get("msg", ""))


@_localized
async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    logger.info("http.validation_error", extra={**_request_extra(request, exc), "error_count": len(errors)})
    responses = _responses(request)

    if any(error.get("type") == "json_invalid" for error in errors):
        return responses.bad_request(responses.messages.get_message(MessageKeys.ERROR_JSON_INVALID)).to_response()

    details = "; ".join(_describe_validation_error(responses, error) for error in errors)
    prefix = responses.messages.get_message(MessageKeys.ERROR_VALIDATION_PREFIX)
    return responses.bad_request(f"{prefix}: {details}").to_response()


@_localized
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Routing errors raised by Starlette keep their default detail (the status
    phrase) and get a localized message instead. HTTPExceptions raised with an
    explicit detail keep it.
    """
    status = exc.status_code
    responses = _responses(request)
    messages = responses.messages
    default_detail = exc.detail == _phrase(status)

    if status == 404 and default_detail:
        message = messages.get_message(MessageKeys.ERROR_ENDPOINT_NOT_FOUND, request.url.path)
    elif status == 405 and default_detail:
        allowed = (exc.headers or {}).get("Allow", "")
        message = messages.get_message(MessageKeys.ERROR_METHOD_NOT_SUPPORTED, request.method, allowed)
    elif status == 415 and default_detail:
        message = messages.get_message(MessageKeys.ERROR_MEDIA_TYPE_NOT_SUPPORTED, request.headers.get("content-type", ""))
    elif isinstance(exc.detail, str):
        message = exc.detail
    else:
        message = _phrase(status)

    logger.info("http.error", extra={**_request_extra(request, exc), "status": status})
    return responses.error(status, message).to_response(headers=exc.headers)


# --- Fallback ---

@_localized
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error("http.unhandled_error", extra=_request_extra(request, exc), exc_info=exc)
    responses = _responses(request)
    return responses.error(500, responses.messages.get_message(MessageKeys.ERROR_INTERNAL_SERVER)).to_response()


# Helper to register all handlers on an app (call this from the app factory).
# Starlette picks the handler by walking the exception's MRO, so ParsingError
# (a ServiceError and a ValueError) lands in service_error_handler.
def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
