"""
ApiResponseBuilder: GenericResponse envelopes with localized messages.

Every method that takes an optional `message` uses it verbatim; otherwise the
default message key is translated through the MessageService in the current
request locale.
"""

import math
from typing import Any, Sequence, TypeVar

from service_template.exceptions import ServiceError
from service_template.i18n.message_keys import MessageKeys
from service_template.i18n.message_service import MessageService

from .generic_response import GenericResponse
from .pagination import PageResult, paginate_list

T = TypeVar("T")


class ApiResponseBuilder:
    def __init__(self, message_service: MessageService):
        self.messages = message_service

    def _msg(self, key: str, *params: Any) -> str:
        return self.messages.get_message(key, *params)

    def _page_info(self, page_number: int, total_pages: int) -> str:
        # Page numbers are zero-based internally and one-based for humans.
        return self._msg(MessageKeys.SUCCESS_PAGE_INFO, page_number + 1, total_pages)

    def _no_results(self) -> GenericResponse:
        return GenericResponse.success_list(200, self._msg(MessageKeys.SUCCESS_NO_RESULTS), [])

    # --- Success ---
    def success(self, data: T, message: str | None = None) -> GenericResponse[T]:
        return GenericResponse.success(200, message or self._msg(MessageKeys.SUCCESS_OPERATION), data)

    def success_list(self, items: Sequence[T] | None, message: str | None = None) -> GenericResponse[T]:
        return GenericResponse.success_list(
            200,
            message or self._msg(MessageKeys.SUCCESS_OPERATION),
            list(items) if items is not None else [],
        )

    def paginated(self, page: PageResult[T] | None, message: str | None = None) -> GenericResponse[T]:
        if page is None or page.total_elements == 0:
            return self._no_results()
        return GenericResponse.success_paginated(
            200,
            message or self._msg(MessageKeys.SUCCESS_PAGINATED),
            page.content,
            page.total_elements,
            self._page_info(page.page_number, page.total_pages),
        )

    def paginated_from_list(
        self,
        items: Sequence[T] | None,
        page_number: int,
        page_size: int,
        message: str | None = None,
    ) -> GenericResponse[T]:
        """Page an in-memory list; `count` is the full list length."""
        if not items:
            return self._no_results()
        total_pages = math.ceil(len(items) / page_size) if page_size > 0 else 0
        return GenericResponse.success_paginated(
            200,
            message or self._msg(MessageKeys.SUCCESS_PAGINATED),
            paginate_list(items, page_number, page_size),
            len(items),
            self._page_info(page_number, total_pages),
        )

    def created(self, data: T, message: str | None = None) -> GenericResponse[T]:
        return GenericResponse.success(201, message or self._msg(MessageKeys.SUCCESS_CREATED), data)

    def no_content(self, message: str | None = None) -> GenericResponse:
        return GenericResponse.success(204, message or self._msg(MessageKeys.SUCCESS_NO_CONTENT))

    # --- Errors ---
    def error(self, code: int = 400, message: str | None = None) -> GenericResponse:
        return GenericResponse.error(code, message or self._msg(MessageKeys.ERROR_BAD_REQUEST))

    def error_from(self, exc: BaseException, code: int | None = None) -> GenericResponse:
        """
        Envelope for an exception.

        ServiceErrors use their own status and, when they carry a message key,
        the translated message. Anything else is a 500 with its str().
        """
        if isinstance(exc, ServiceError):
            message = self._msg(exc.message_key, *exc.params) if exc.message_key else exc.message
            return GenericResponse.error(code or exc.http_status(), message)
        return GenericResponse.error(code or 500, str(exc) or self._msg(MessageKeys.ERROR_INTERNAL_SERVER))

    def bad_request(self, message: str | None = None) -> GenericResponse:
        return GenericResponse.error(400, message or self._msg(MessageKeys.ERROR_BAD_REQUEST))

    def not_found(self, message: str | None = None) -> GenericResponse:
        return GenericResponse.error(404, message or self._msg(MessageKeys.ERROR_NOT_FOUND))

    def unauthorized(self, message: str | None = None) -> GenericResponse:
        return GenericResponse.error(401, message or self._msg(MessageKeys.ERROR_UNAUTHORIZED))

    def forbidden(self, message: str | None = None) -> GenericResponse:
        return GenericResponse.error(403, message or self._msg(MessageKeys.ERROR_FORBIDDEN))


__all__ = ["ApiResponseBuilder"]
