"""
Service-wide exception taxonomy.

Three families cover everything the service raises on purpose:

    ServiceError
    ├── DomainError              business rules (400)
    │   ├── ValidationError      context rejected by pre_process
    │   └── ExecutionError       process could not complete the mutation
    ├── ParsingError             structural interpretation of input (also a ValueError)
    ├── ApplicationError         wiring / unexpected application failure (500)
    └── InfrastructureError      database, executor, external systems (500)
        ├── RepositoryError      generic repository failure (400 by default)
        │   ├── NotFoundError    (404)
        │   ├── DuplicateError   (409)
        │   └── InvalidFieldError (422)
        └── TaskRejectedError    worker pool saturated (503)

Every error carries a human-friendly `message` and, optionally, a `message_key`
(+ positional `params`) so the HTTP layer can render it in the caller's locale.
"""

from typing import Any, Iterable, Sequence


class ServiceError(Exception):
    """
    Base exception for everything the service raises deliberately.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - error_code: canonical short code (e.g., 'domain', 'not_found') used by clients
    - message_key: optional i18n key; the HTTP layer translates it when present
    - params: positional parameters for the message_key template
    """

    # Map canonical error_code -> HTTP status.
    ERROR_CODE_TO_STATUS = {
        "domain": 400,
        "validation": 400,
        "execution": 400,
        "parsing": 400,
        "invalid_input": 422,
        "invalid_field": 422,
        "not_found": 404,
        "duplicate": 409,
        "application": 500,
        "infrastructure": 500,
        "rejected": 503,
    }

    # Status used when the error_code is missing or unknown.
    default_status = 400
    default_code: str | None = None

    def __init__(
        self,
        message: str,
        *,
        fields: Iterable[str] | None = None,
        error_code: str | None = None,
        message_key: str | None = None,
        params: Sequence[Any] = (),
    ):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.error_code = error_code or self.default_code
        self.message_key = message_key
        self.params = tuple(params)

    def __str__(self) -> str:
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{self.message} ({'; '.join(parts)})"
        return self.message

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict describing the error.

            {"detail": "...", "code": "duplicate", "fields": ["username"]}

        Raw driver messages and constraint names are never included.
        """
        payload: dict[str, Any] = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, self.default_status)
        return self.default_status


# -----------------------
# Domain
# -----------------------

class DomainError(ServiceError):
    """The single error kind a command surfaces to its caller, whatever phase failed."""

    default_code = "domain"


class ValidationError(DomainError):
    """Raised by pre_process when the context fails a business-rule check."""

    default_code = "validation"


class ExecutionError(DomainError):
    """Raised by process when the mutation could not be completed."""

    default_code = "execution"


class ParsingError(ServiceError, ValueError):
    """
    Raised while interpreting raw context fields (dates, numbers, enums...).

    Also a ValueError so callers that already guard parsing code with
    `except ValueError` keep working.
    """

    default_code = "parsing"


# -----------------------
# Application / infrastructure
# -----------------------

class ApplicationError(ServiceError):
    default_status = 500
    default_code = "application"


class InfrastructureError(ServiceError):
    default_status = 500
    default_code = "infrastructure"


class TaskRejectedError(InfrastructureError):
    """The async worker pool has no room left (running + queued at capacity)."""

    default_code = "rejected"


class RepositoryError(InfrastructureError):
    """
    Base exception for repository errors.

    constraint: optional DB constraint name, kept for logs only (never sent to clients).
    """

    # Most repository errors are caused by the input they were given.
    default_status = 400
    default_code = None

    def __init__(
        self,
        message: str,
        *,
        fields: Iterable[str] | None = None,
        constraint: str | None = None,
        error_code: str | None = None,
        message_key: str | None = None,
        params: Sequence[Any] = (),
    ):
        super().__init__(
            message,
            fields=fields,
            error_code=error_code,
            message_key=message_key,
            params=params,
        )
        self.constraint = constraint

    def __str__(self) -> str:
        base = super().__str__()
        if self.constraint:
            return f"{base} [constraint: {self.constraint}]"
        return base


class NotFoundError(RepositoryError):
    default_code = "not_found"

    def __init__(self, message: str = "Not found", **kwargs: Any):
        super().__init__(message, **kwargs)


class DuplicateError(RepositoryError):
    default_code = "duplicate"


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unknown fields to repository methods."""

    default_code = "invalid_field"


__all__ = [
    "ServiceError",
    "DomainError",
    "ValidationError",
    "ExecutionError",
    "ParsingError",
    "ApplicationError",
    "InfrastructureError",
    "TaskRejectedError",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
