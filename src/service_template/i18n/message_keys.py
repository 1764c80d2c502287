"""
Catalog keys used across the service.

Every key here has an entry in `locales/messages*.toml`. Placeholders use
positional `{0}`, `{1}`... syntax.
"""


class MessageKeys:
    # Success
    SUCCESS_OPERATION = "success.operation"
    SUCCESS_CREATED = "success.created"
    SUCCESS_NO_CONTENT = "success.no.content"
    SUCCESS_PAGINATED = "success.paginated"
    SUCCESS_NO_RESULTS = "success.no.results"
    SUCCESS_PAGE_INFO = "success.page.info"

    # General errors
    ERROR_INTERNAL_SERVER = "error.internal.server"
    ERROR_BAD_REQUEST = "error.bad.request"
    ERROR_NOT_FOUND = "error.not.found"
    ERROR_UNAUTHORIZED = "error.unauthorized"
    ERROR_FORBIDDEN = "error.forbidden"
    ERROR_NULL_VALUE = "error.null.value"

    # Validation
    ERROR_VALIDATION_PREFIX = "error.validation.prefix"
    ERROR_CONSTRAINT_VIOLATION = "error.constraint.violation"
    ERROR_ILLEGAL_ARGUMENT = "error.illegal.argument"
    ERROR_TYPE_MISMATCH = "error.type.mismatch"
    ERROR_JSON_INVALID = "error.json.invalid"
    ERROR_METHOD_NOT_SUPPORTED = "error.method.not.supported"
    ERROR_MEDIA_TYPE_NOT_SUPPORTED = "error.media.type.not.supported"
    ERROR_PARAMETER_MISSING = "error.parameter.missing"
    ERROR_ENDPOINT_NOT_FOUND = "error.endpoint.not.found"

    # Database
    ERROR_DATA_INTEGRITY = "error.data.integrity"
    ERROR_FK_CONSTRAINT = "error.fk.constraint"
    ERROR_DUPLICATE = "error.duplicate"
    ERROR_MISSING_FIELDS = "error.missing.fields"
    ERROR_UNKNOWN_FIELDS = "error.unknown.fields"

    # Domain
    ERROR_DOMAIN_VALID_ENUM = "error.domain.valid.enum"
    ERROR_DOMAIN_VALID_ID_EMPTY = "error.domain.valid.id.empty"
    ERROR_DOMAIN_VALID_CONTEXT_NULL = "error.domain.valid.context.null"
    ERROR_DOMAIN_VALID_CREATE_EMPTY = "error.domain.valid.create.empty"
    ERROR_DOMAIN_VALID_UPDATE_EMPTY = "error.domain.valid.update.empty"
    ERROR_DOMAIN_INVALID_DATE = "error.domain.invalid.date"

    # Infrastructure
    ERROR_INFRASTRUCTURE_NO_RECORD_BY_ID = "error.infrastructure.no.record.by.id"
    ERROR_INFRASTRUCTURE_EXECUTOR_BUSY = "error.infrastructure.executor.busy"


__all__ = ["MessageKeys"]
