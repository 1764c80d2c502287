import pytest

from service_template.exceptions import (
    ApplicationError,
    DomainError,
    DuplicateError,
    ExecutionError,
    InfrastructureError,
    InvalidFieldError,
    NotFoundError,
    ParsingError,
    RepositoryError,
    ServiceError,
    TaskRejectedError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc,status",
    [
        (DomainError("x"), 400),
        (ValidationError("x"), 400),
        (ExecutionError("x"), 400),
        (ParsingError("x"), 400),
        (ApplicationError("x"), 500),
        (InfrastructureError("x"), 500),
        (TaskRejectedError("x"), 503),
        (RepositoryError("x"), 400),
        (NotFoundError(), 404),
        (DuplicateError("x"), 409),
        (InvalidFieldError("x"), 422),
    ],
)
def test_http_status(exc, status):
    assert exc.http_status() == status


def test_hierarchy():
    assert issubclass(ValidationError, DomainError)
    assert issubclass(ExecutionError, DomainError)
    assert not issubclass(ParsingError, DomainError)
    assert issubclass(ParsingError, ValueError)
    assert issubclass(NotFoundError, RepositoryError)
    assert issubclass(RepositoryError, InfrastructureError)
    assert issubclass(TaskRejectedError, InfrastructureError)
    assert all(issubclass(cls, ServiceError) for cls in (DomainError, ApplicationError, InfrastructureError, ParsingError))


def test_payload_and_str():
    err = DuplicateError("Item exists", fields=["sku"], constraint="uq_items_sku")

    assert err.to_payload() == {"detail": "Item exists", "code": "duplicate", "fields": ["sku"]}
    assert str(err) == "Item exists (fields: sku; code: duplicate) [constraint: uq_items_sku]"


def test_message_key_and_params():
    err = DomainError("Invalid date", message_key="error.domain.invalid.date", params=["31/02"])
    assert err.message_key == "error.domain.invalid.date"
    assert err.params == ("31/02",)
    assert err.fields is None


def test_not_found_default_message():
    assert NotFoundError().message == "Not found"
